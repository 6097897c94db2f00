"""EdgePaste: paste an image, tune an edge-detection pipeline, copy the sketch."""

__version__ = "0.1.0"
