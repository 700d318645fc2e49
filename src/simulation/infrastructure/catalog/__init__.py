from .model_catalog import ModelCatalog

__all__ = ["ModelCatalog"]
