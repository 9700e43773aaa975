from .addon import HelloAddon

__all__ = ["HelloAddon"]
