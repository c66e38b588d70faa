__all__ = ["UnresponsiveEntrySweeper"]


def __getattr__(name: str):
    if name == "UnresponsiveEntrySweeper":
        from .sweeper import UnresponsiveEntrySweeper

        return UnresponsiveEntrySweeper
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
