from .pipeline import IndexingConfig, IndexingPipeline

__all__ = ["IndexingConfig", "IndexingPipeline"]
