from debut.lib.hooks import HookRegistry, hooks

__all__ = ["HookRegistry", "hooks"]
