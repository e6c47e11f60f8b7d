class ModelInspectError(Exception):
    """Base class for everything that aborts an inspection."""
    pass


class ModelIoError(ModelInspectError):
    """The model file could not be read."""
    pass


class ModelDecodeError(ModelInspectError):
    """The bytes are not a valid serialized ONNX ModelProto."""
    pass


class StructuralError(ModelInspectError):
    pass


class MissingGraphError(StructuralError):
    pass


class UnsupportedTypeError(StructuralError):
    pass


class ArchiveHeaderError(ModelInspectError):
    """The safetensors length prefix or JSON header is malformed."""
    pass


class FormatDetectionError(ModelInspectError):
    """Neither the ONNX decoder nor the safetensors parser accepted the file."""

    def __init__(self, onnx_error: Exception, archive_error: Exception):
        self.onnx_error = onnx_error
        self.archive_error = archive_error
        super().__init__(
            f"not an ONNX model ({onnx_error}) and not a safetensors file ({archive_error})"
        )
