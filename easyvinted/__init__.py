"""
EasyVinted Publisher

通过真实浏览器会话把商品发布到 Vinted。
"""

__version__ = "1.0.0"
