"""prodshot：从商品视频中挑帧、抠图并生成棚拍效果图。"""

__version__ = "0.1.0"
