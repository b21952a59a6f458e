import asyncio
import hashlib

from models.schemas import Hashes


class FileHashingService:
    """
    Service for computing file hashes
    """

    def digest(self, file_data: bytes) -> Hashes:
        """
        Compute MD5, SHA-1 and SHA-256 hashes of file data
        """
        return Hashes(
            md5=hashlib.md5(file_data).hexdigest(),
            sha1=hashlib.sha1(file_data).hexdigest(),
            sha256=hashlib.sha256(file_data).hexdigest(),
        )

    async def hash_file(self, file_data: bytes) -> Hashes:
        return await asyncio.to_thread(self.digest, file_data)
