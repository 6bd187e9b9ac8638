import os
import uuid
import logging
from fastapi import UploadFile, HTTPException
from homeease.core.config import settings

logger = logging.getLogger(__name__)


class UploadService:
    @staticmethod
    async def save_file(file: UploadFile, folder: str = "evidence") -> dict:
        """
        Stores an uploaded file under UPLOAD_DIR and returns its filename and public URL.
        """
        # Read at most one byte past the cap
        content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="File too large")

        file_extension = os.path.splitext(file.filename or "")[1]
        unique_filename = f"{uuid.uuid4()}{file_extension}"
        target_dir = os.path.join(settings.UPLOAD_DIR, folder)
        os.makedirs(target_dir, exist_ok=True)

        try:
            with open(os.path.join(target_dir, unique_filename), "wb") as buffer:
                buffer.write(content)
        except OSError as e:
            logger.error(f"Upload write error: {e}")
            raise HTTPException(status_code=500, detail="File upload failed")
        finally:
            await file.seek(0)

        return {
            "filename": file.filename or unique_filename,
            "url": f"/uploads/{folder}/{unique_filename}",
        }
