"""GUI package (PyQt6): main window, sliders, Qt scheduler and theme builder."""
