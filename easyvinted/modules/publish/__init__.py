"""
发布编排模块
Publish Module
"""

from .service import PublishAttempt, PublishOrchestrator, publish_listing

__all__ = ["PublishAttempt", "PublishOrchestrator", "publish_listing"]
