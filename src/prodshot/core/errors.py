"""错误分类：输入、配置、选帧与分割失败各自独立，便于边界层映射状态码。"""

from __future__ import annotations


class ProdshotError(RuntimeError):
    """所有流水线错误的基类。"""


class InputError(ProdshotError):
    """输入不合法（无帧、视频过短等），不发起任何远程调用。"""


class VideoOpenError(InputError):
    """视频无法打开时抛出的异常，便于上层捕获并降级。"""


class FrameCaptureError(InputError):
    """某个时间点 seek 或解码失败，整次采样作废。"""


class ConfigurationError(ProdshotError):
    """缺少凭证或配置文件格式错误。"""


class ModelResponseError(ProdshotError):
    """远程模型返回非 2xx 或无法解析的响应体。"""


class SelectionError(ProdshotError):
    """选帧阶段失败：没有安全的默认值，整条流水线终止。"""


class SegmentationFailure(ProdshotError):
    """所有帧都未能分割出产品。"""
