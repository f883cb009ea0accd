import logging
import os
import re
import time

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def safe_filename(filename: str) -> str:
    name = os.path.basename((filename or '').replace('\\', '/'))
    name = _UNSAFE_FILENAME_CHARS.sub('_', name).strip('._')
    return name or 'resume'


class LocalFileStorage:
    """Stores uploads under ``{upload_dir}/{candidate_id}/``."""

    def __init__(self, upload_dir: str) -> None:
        self.upload_dir = upload_dir

    def save(self, candidate_id: str, filename: str, content: bytes) -> str:
        candidate_dir = os.path.join(self.upload_dir, candidate_id)
        os.makedirs(candidate_dir, exist_ok=True)

        epoch = int(time.time())
        name = safe_filename(filename)
        path = os.path.join(candidate_dir, f'{epoch}_{name}')
        attempt = 0
        while True:
            try:
                handle = open(path, 'xb')
            except FileExistsError:
                # Same name uploaded within the same second.
                attempt += 1
                path = os.path.join(candidate_dir, f'{epoch}_{attempt}_{name}')
                continue
            with handle:
                handle.write(content)
            break
        logger.info('Stored %s bytes at %s', len(content), path)
        return path

    def delete(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
