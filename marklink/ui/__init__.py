"""Qt-aware registry, scheduler, controllers and widgets."""
