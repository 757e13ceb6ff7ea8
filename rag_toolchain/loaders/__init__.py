from .single_file import SingleFileLoader

__all__ = ["SingleFileLoader"]
