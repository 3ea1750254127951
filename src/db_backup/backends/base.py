from abc import ABC, abstractmethod
from typing import List


class Backend(ABC):
    """
    ABC for storage backends.
    Implements how to store archives and how to list existing ones.
    """

    @abstractmethod
    def upload(self, key: str, data: bytes) -> None:
        """
        Store the archive under the given key. Not retried.
        :param key: object key / file name
        :param data: archive content
        :raises UploadError: the backend rejected the archive
        """
        pass

    @abstractmethod
    def get_existing_backups(self) -> List[str]:
        """
        Returns a list of the keys of existing archives.
        """
        pass
