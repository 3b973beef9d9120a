import os
import sys
import threading
from collections import OrderedDict
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from fontTools.ttLib import TTCollection, TTFont

from utils.exceptions import FamilyNotFoundError, FontLoadError
from utils.logging import log_message

from .font_program import FontProgram, SkiaFontProgram


# --- LRU Cache Implementation ---
class LRUCache:
    """Simple LRU cache implementation to prevent unbounded memory growth."""

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self.cache = OrderedDict()

    def get(self, key):
        if key in self.cache:
            # Move to end (most recently used)
            value = self.cache.pop(key)
            self.cache[key] = value
            return value
        return None

    def put(self, key, value):
        if key in self.cache:
            self.cache.pop(key)
        elif len(self.cache) >= self.max_size:
            # Remove least recently used (first item)
            self.cache.popitem(last=False)
        self.cache[key] = value


_font_data_cache = LRUCache(max_size=50)
_font_cache_lock = threading.RLock()

BUILTIN_FONT_FILES = {
    "regular": "DejaVuSansMono.ttf",
    "italic": "DejaVuSansMono-Oblique.ttf",
    "bold": "DejaVuSansMono-Bold.ttf",
    "bold_italic": "DejaVuSansMono-BoldOblique.ttf",
}

FONT_EXTENSIONS = {".ttf", ".otf", ".ttc", ".otc"}
COLLECTION_EXTENSIONS = {".ttc", ".otc"}

# OS/2 fsSelection bits
FS_SELECTION_ITALIC = 1 << 0
FS_SELECTION_OBLIQUE = 1 << 9
# head.macStyle bits
MAC_STYLE_BOLD = 1 << 0
MAC_STYLE_ITALIC = 1 << 1

SLANT_NORMAL = "normal"
SLANT_ITALIC = "italic"
SLANT_OBLIQUE = "oblique"


def load_font_data(font_path: str) -> bytes:
    """
    Reads a font file, using the shared LRU cache.

    Raises:
        FontLoadError: If the file cannot be read
    """
    with _font_cache_lock:
        font_data = _font_data_cache.get(font_path)
        if font_data is not None:
            return font_data
        try:
            with open(font_path, "rb") as f:
                font_data = f.read()
        except OSError as e:
            log_message(
                f"Failed to read font file {os.path.basename(font_path)}: {e}",
                always_print=True,
            )
            raise FontLoadError(f"Failed to read font file: {font_path}") from e
        _font_data_cache.put(font_path, font_data)
    return font_data


@lru_cache(maxsize=None)
def load_builtin_font_data() -> Dict[str, bytes]:
    """Reads the embedded font files once per process."""
    assets = resources.files("fontraster") / "assets" / "fonts"
    return {
        style: (assets / filename).read_bytes()
        for style, filename in BUILTIN_FONT_FILES.items()
    }


def default_font_dirs() -> List[Path]:
    """Returns the platform's usual font directories."""
    home = Path.home()
    if sys.platform == "darwin":
        dirs = [home / "Library" / "Fonts", Path("/Library/Fonts"), Path("/System/Library/Fonts")]
    elif sys.platform.startswith("win"):
        windir = os.environ.get("WINDIR", r"C:\Windows")
        dirs = [Path(windir) / "Fonts"]
        local_appdata = os.environ.get("LOCALAPPDATA")
        if local_appdata:
            dirs.append(Path(local_appdata) / "Microsoft" / "Windows" / "Fonts")
    else:
        data_home = Path(os.environ.get("XDG_DATA_HOME", home / ".local" / "share"))
        dirs = [
            data_home / "fonts",
            home / ".fonts",
            Path("/usr/local/share/fonts"),
            Path("/usr/share/fonts"),
        ]
    return dirs


@dataclass(frozen=True)
class FontHandle:
    """One face found by the font store, classified but not yet loaded."""

    path: Path
    index: int
    family: str
    slant: str
    weight: int

    def load(self) -> FontProgram:
        """
        Loads the face as a font program.

        Raises:
            FontLoadError: If the file cannot be read or parsed
        """
        font_data = load_font_data(str(self.path))
        return SkiaFontProgram(font_data, index=self.index, name=f"{self.path.name}#{self.index}")


def _classify_face(font: TTFont) -> Optional[tuple]:
    """Returns (family, slant, weight) for a parsed face, or None without a family name."""
    family = font["name"].getBestFamilyName() if "name" in font else None
    if not family:
        return None

    mac_style = font["head"].macStyle if "head" in font else 0
    if "OS/2" in font:
        os2 = font["OS/2"]
        weight = int(os2.usWeightClass)
        fs_selection = os2.fsSelection
    else:
        weight = 700 if mac_style & MAC_STYLE_BOLD else 400
        fs_selection = 0

    if fs_selection & FS_SELECTION_ITALIC:
        slant = SLANT_ITALIC
    elif fs_selection & FS_SELECTION_OBLIQUE:
        slant = SLANT_OBLIQUE
    elif mac_style & MAC_STYLE_ITALIC:
        slant = SLANT_ITALIC
    else:
        slant = SLANT_NORMAL

    return family, slant, weight


def describe_font_file(path: Path, verbose: bool = False) -> List[FontHandle]:
    """
    Lists the faces contained in a font file with their family, slant and weight.

    Unreadable files yield an empty list.
    """
    handles: List[FontHandle] = []
    try:
        if path.suffix.lower() in COLLECTION_EXTENSIONS:
            collection = TTCollection(str(path), lazy=True)
            faces = list(collection.fonts)
        else:
            collection = None
            faces = [TTFont(str(path), lazy=True)]
    except Exception as e:
        log_message(f"Skipping unreadable font file {path.name}: {e}", verbose=verbose)
        return handles

    try:
        for index, face in enumerate(faces):
            try:
                classified = _classify_face(face)
            except Exception as e:
                log_message(f"Skipping face {index} of {path.name}: {e}", verbose=verbose)
                continue
            if classified is None:
                continue
            family, slant, weight = classified
            handles.append(FontHandle(path=path, index=index, family=family, slant=slant, weight=weight))
    finally:
        if collection is not None:
            collection.close()
        else:
            faces[0].close()

    return handles


class SystemFontStore:
    """
    Finds installed fonts by family name.

    Font directories are scanned once, on the first lookup; every face is
    classified with fontTools from its name, OS/2 and head tables.

    Args:
        font_dirs: Directories to scan instead of the platform defaults.
        extra_font_dirs: Directories scanned in addition to `font_dirs`
                         (or to the platform defaults).
        verbose: Whether to log the scan.
    """

    def __init__(
        self,
        font_dirs: Optional[Iterable[str]] = None,
        extra_font_dirs: Optional[Iterable[str]] = None,
        verbose: bool = False,
    ):
        self.font_dirs = [Path(d) for d in font_dirs] if font_dirs else default_font_dirs()
        for extra_dir in extra_font_dirs or ():
            if Path(extra_dir) not in self.font_dirs:
                self.font_dirs.append(Path(extra_dir))
        self.verbose = verbose
        self._index: Optional[Dict[str, List[FontHandle]]] = None
        self._lock = threading.Lock()

    def _iter_font_files(self) -> List[Path]:
        font_files: List[Path] = []
        for font_dir in self.font_dirs:
            if not font_dir.is_dir():
                log_message(f"Font directory '{font_dir}' does not exist, skipping", verbose=self.verbose)
                continue
            log_message(f"Scanning font directory: {font_dir}", verbose=self.verbose)
            font_files.extend(
                p for p in font_dir.rglob("*") if p.is_file() and p.suffix.lower() in FONT_EXTENSIONS
            )
        return sorted(font_files)

    def _build_index(self) -> Dict[str, List[FontHandle]]:
        index: Dict[str, List[FontHandle]] = {}
        for font_file in self._iter_font_files():
            for handle in describe_font_file(font_file, verbose=self.verbose):
                index.setdefault(handle.family.casefold(), []).append(handle)
        log_message(f"Indexed {len(index)} font families", verbose=self.verbose)
        return index

    def _get_index(self) -> Dict[str, List[FontHandle]]:
        with self._lock:
            if self._index is None:
                self._index = self._build_index()
            return self._index

    def families(self) -> List[str]:
        """Returns the names of every indexed family."""
        return sorted({handles[0].family for handles in self._get_index().values()})

    def select_family_by_name(self, name: str) -> List[FontHandle]:
        """
        Returns every face of the family called `name` (case-insensitive).

        Raises:
            FamilyNotFoundError: If no installed family matches
        """
        handles = self._get_index().get(name.casefold())
        if not handles:
            raise FamilyNotFoundError(f"No font family named '{name}' was found")
        return list(handles)
