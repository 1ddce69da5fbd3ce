"""refswitch - Switch NuGet package references to project references and back."""

__version__ = "0.1.0"
__all__ = ["__version__"]
