"""Raw image files (PAM/PNM, Y4M, test patterns) and baseline JPEG header writing."""

__version__ = "0.1.0"
__all__ = ["types", "pam", "y4m", "image_delegate", "writer", "scan"]