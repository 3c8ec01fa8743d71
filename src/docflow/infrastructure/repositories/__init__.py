from .file_action_request_repository import SqlAlchemyFileActionRequestRepository, to_entity

__all__ = ["SqlAlchemyFileActionRequestRepository", "to_entity"]
