"""Build Config Compile: drive a native C toolchain with nothing but Python."""

__version__ = "0.1.1"

from .bootstrap import BootstrapState, SelfRebuilder, rebuild_urself  # noqa: E402
from .context import Context  # noqa: E402
from .recipe import CRecipe  # noqa: E402

__all__ = [
    "BootstrapState",
    "CRecipe",
    "Context",
    "SelfRebuilder",
    "__version__",
    "rebuild_urself",
]
