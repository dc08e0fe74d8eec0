# docfill/storage/drive.py
import json
import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

MANIFEST_NAME = "_files.json"
TRASH_DIR = ".trash"


@dataclass(frozen=True)
class DriveFile:
    file_id: str
    name: str
    path: Path
    url: str


class LocalDrive:
    """
    File storage with stable ids and shareable links, kept on the local disk.

    Files live in <root>/folders/<folder_id>/ and are tracked in a JSON
    manifest (file id -> relative path). Links have the form
    "{link_base}/{file_id}" so any link can be mapped back to its file id.
    Folders are created on first use.
    """

    def __init__(self, root: Path, link_base: str, templates_dir: Optional[Path] = None):
        self.root = Path(root)
        self.link_base = link_base.rstrip("/")
        self.templates_dir = Path(templates_dir) if templates_dir else None
        self.manifest_path = self.root / MANIFEST_NAME

    # ========== Manifest ==========

    def _read_manifest(self) -> Dict[str, Dict[str, str]]:
        if not self.manifest_path.exists():
            return {}
        with open(self.manifest_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_manifest(self, manifest: Dict[str, Dict[str, str]]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.manifest_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2, ensure_ascii=False)

    # ========== Links ==========

    def url_for(self, file_id: str) -> str:
        return f"{self.link_base}/{file_id}"

    def folder_url(self, folder_id: str) -> str:
        return f"{self.link_base.rsplit('/file/', 1)[0]}/drive/folders/{folder_id}"

    def folder_path(self, folder_id: str) -> Path:
        path = self.root / "folders" / folder_id
        path.mkdir(parents=True, exist_ok=True)
        return path

    # ========== Files ==========

    def _unique_target(self, folder: Path, name: str) -> Path:
        target = folder / name
        counter = 2
        while target.exists():
            target = folder / f"{Path(name).stem} ({counter}){Path(name).suffix}"
            counter += 1
        return target

    def _register(self, target: Path, folder_id: str) -> DriveFile:
        file_id = uuid.uuid4().hex
        manifest = self._read_manifest()
        manifest[file_id] = {
            "name": target.name,
            "folder": folder_id,
            "path": str(target.relative_to(self.root)),
        }
        self._write_manifest(manifest)
        logger.debug(f"Registered file {file_id} -> {target}")
        return DriveFile(file_id=file_id, name=target.name, path=target, url=self.url_for(file_id))

    def add_file(self, source: Path, name: str, folder_id: str) -> DriveFile:
        """Copies a local file into a drive folder under a new id."""
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Source file not found: {source}")
        target = self._unique_target(self.folder_path(folder_id), name)
        shutil.copy2(source, target)
        return self._register(target, folder_id)

    def copy_file(self, file_id: str, name: str, folder_id: str) -> DriveFile:
        """Copies a stored file (or a template) into a folder under a new name."""
        return self.add_file(self.open_template(file_id), name, folder_id)

    def get_file(self, file_id: str) -> DriveFile:
        entry = self._read_manifest().get(file_id)
        if entry is None:
            raise FileNotFoundError(f"No file with id '{file_id}'")
        path = self.root / entry["path"]
        if not path.exists():
            raise FileNotFoundError(f"File '{file_id}' is registered but missing on disk: {path}")
        return DriveFile(file_id=file_id, name=entry["name"], path=path, url=self.url_for(file_id))

    def open_template(self, template_id: str) -> Path:
        """
        Path of a template by id: a registered drive file first, then
        <templates_dir>/<template_id>.xlsx.
        """
        try:
            return self.get_file(template_id).path
        except FileNotFoundError:
            pass
        if self.templates_dir is not None:
            candidate = self.templates_dir / f"{template_id}.xlsx"
            if candidate.exists():
                return candidate
        raise FileNotFoundError(f"Template '{template_id}' not found")

    def trash_file(self, file_id: str) -> None:
        """
        Moves a file to the drive trash and forgets its id.

        Raises:
            FileNotFoundError: if the id is unknown or the file is gone.
        """
        drive_file = self.get_file(file_id)
        trash = self.root / TRASH_DIR
        trash.mkdir(parents=True, exist_ok=True)
        shutil.move(str(drive_file.path), str(trash / f"{file_id}_{drive_file.name}"))
        manifest = self._read_manifest()
        manifest.pop(file_id, None)
        self._write_manifest(manifest)
        logger.info(f"Moved file {file_id} ({drive_file.name}) to trash")
