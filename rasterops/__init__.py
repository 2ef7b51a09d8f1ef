"""In-memory raster helpers: colour models, nearest-neighbour resize, wraparound convolution, GIF frames."""

__version__ = "1.0.0"
