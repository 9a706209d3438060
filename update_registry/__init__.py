"""Update registry: update server for Tauri desktop applications."""

__version__ = "0.1.0"
