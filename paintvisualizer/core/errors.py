"""Exception hierarchy shared by the controller, image clients and API adapters.

Error taxonomy:
    - `ValidationError`: local input problems (missing image, empty prompt,
      rejected upload). Never reaches the generation client.
    - `GenerationError`: any failure from the generation client. Subclasses
      separate transport, credential, quota, content-policy and malformed
      response failures so each can carry its own user-facing message.

All messages are user-presentable; the controller displays `str(err)`.
"""


class PaintVisualizerError(Exception):
    """Base class for all application errors."""


class ValidationError(PaintVisualizerError):
    """Input rejected before any provider call."""


class GenerationError(PaintVisualizerError):
    """Failure reported by, or while talking to, the image provider."""

    default_message = "Không thể tạo ảnh phối màu. Vui lòng thử lại."

    def __init__(self, message=None, provider=None, status_code=None):
        super().__init__(message or self.default_message)
        self.provider = provider
        self.status_code = status_code


class ProviderConfigError(GenerationError):
    default_message = "Nhà cung cấp tạo ảnh chưa được cấu hình đúng."


class ProviderConnectionError(GenerationError):
    default_message = "Không thể kết nối tới dịch vụ tạo ảnh. Vui lòng kiểm tra mạng."


class AuthenticationError(GenerationError):
    default_message = "Khóa API của dịch vụ tạo ảnh bị thiếu hoặc không hợp lệ."


class QuotaExceededError(GenerationError):
    default_message = "Dịch vụ tạo ảnh đã vượt hạn mức. Vui lòng thử lại sau."


class ContentRejectedError(GenerationError):
    default_message = "Yêu cầu bị từ chối bởi bộ lọc nội dung của dịch vụ tạo ảnh."


class EmptyResponseError(GenerationError):
    default_message = "Dịch vụ tạo ảnh không trả về hình ảnh nào."
