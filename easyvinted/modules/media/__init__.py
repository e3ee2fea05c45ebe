"""
图片传输模块
Photo Transfer Module
"""

from .models import EphemeralPhoto
from .service import PhotoTransferPipeline

__all__ = ["EphemeralPhoto", "PhotoTransferPipeline"]
