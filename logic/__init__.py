"""Configuration, validation, grid geometry and snapshot helpers."""
