from .gateway import EnrichmentGateway

__all__ = ["EnrichmentGateway"]
