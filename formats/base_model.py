from abc import ABC, abstractmethod
from typing import Optional


class BaseModel(ABC):
    """
    Abstract base class for every model format the inspector understands.
    A model is built once from raw bytes and is read-only afterwards.
    """

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Short format tag used in reports and JSON output."""
        pass

    @abstractmethod
    def summary(self, filename: Optional[str] = None):
        """
        Build the immutable summary record for this model.
        filename is only shown by formats that carry no name of their own.
        """
        pass

    def __repr__(self):
        return f"<Model: {self.format_name}>"
