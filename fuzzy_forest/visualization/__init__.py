from .module_plotter import ModulePlotter

__all__ = ['ModulePlotter']
