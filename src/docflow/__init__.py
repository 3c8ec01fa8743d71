"""DocFlow - document management backend, file action approval workflow."""

__version__ = "0.1.0"
