from . import canvas, config, gradescope, grades, scales, sis

__all__ = ["canvas", "config", "gradescope", "grades", "scales", "sis"]
