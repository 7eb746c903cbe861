"""
Temporary directory and temporary file bookkeeping.

Every intermediate artifact of a run lives in one private directory under the
configured work directory. `TempFileRegistry` is the only place that hands out
paths inside it, and it records each path before returning it, so teardown can
remove every file a stage (or an external tool) may have left behind.
"""
import os
import time
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from ..config.common import TEMP_DIR_CODE_MASK, TEMP_DIR_PREFIX
from .exceptions import NoTempDirectoryException, TempDirectoryException
from .media import CMType


class TempDirectory:
    """
    A uniquely named directory created under `base_dir`.

    With an empty `base_dir` nothing is created and `path` raises
    `NoTempDirectoryException`. Some operating modes run that way.
    """

    def __init__(self, base_dir: Union[str, Path, None]):
        self._path: Optional[Path] = None
        if not base_dir:
            return

        base = Path(base_dir)
        code = int(time.time()) & TEMP_DIR_CODE_MASK
        while code > 0:
            candidate = base / f"{TEMP_DIR_PREFIX}{code}"
            try:
                os.mkdir(candidate)
            except FileExistsError:
                code += 1
                continue
            except OSError as e:
                raise TempDirectoryException(
                    f"Failed to create temporary directory under '{base}': {e}"
                ) from e
            self._path = candidate.resolve()
            break

        if self._path is None:
            raise TempDirectoryException(f"Failed to create temporary directory under '{base}'")
        logger.debug(f"Created temporary directory {self._path}")

    @property
    def exists(self) -> bool:
        return self._path is not None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise NoTempDirectoryException("No temporary directory is configured (work_dir is empty)")
        return self._path

    def remove(self):
        """Removes the directory. A failure is logged, never raised."""
        if self._path is None:
            return
        try:
            self._path.rmdir()
            logger.debug(f"Removed temporary directory {self._path}")
        except OSError as e:
            logger.warning(f"Failed to remove temporary directory {self._path}: {e}")
        self._path = None


class TempFileRegistry:
    """
    Generates the per-stage temporary paths of a run and removes them afterwards.

    Paths follow `<temp_dir>/<kind><indices><cm suffix>.<ext>`, so the same
    (kind, video index, output index, variant) tuple always maps to the same
    file. Use it as a context manager, or call `close()` exactly once on every
    exit path; calling it again does nothing.
    """

    def __init__(self, base_dir: Union[str, Path, None]):
        self._files: List[Path] = []
        self._closed = False
        self.temp_dir = TempDirectory(base_dir)

    def __enter__(self) -> "TempFileRegistry":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def path(self) -> Path:
        return self.temp_dir.path

    @property
    def files(self) -> List[Path]:
        return list(self._files)

    def register(self, path: Union[str, Path]) -> Path:
        """
        Adds `path` to the teardown list once and returns it as a `Path`.

        Args:
            path: A file that `close()` should delete. It may lie outside the
                temporary directory.

        Returns:
            Path: The registered path.
        """
        path = Path(path)
        if path not in self._files:
            self._files.append(path)
        return path

    def generate(self, name: str) -> Path:
        """Builds `name` inside the temporary directory and registers it."""
        return self.register(self.path / name)

    # --- Source / decode stage ---

    def audio_file_path(self) -> Path:
        """Demuxed audio of the whole source."""
        return self.generate("audio.dat")

    def wave_file_path(self) -> Path:
        """Decoded PCM audio used by the CM analysis."""
        return self.generate("audio.wav")

    def int_video_file_path(self, index: int) -> Path:
        """Demuxed video of source segment `index`."""
        return self.generate(f"i{index}.mpg")

    def tmp_amt_source_path(self, vindex: int) -> Path:
        """Frame index of video `vindex` for the AviSynth source script."""
        return self.generate(f"amts{vindex}.dat")

    def tmp_source_avs_path(self, vindex: int) -> Path:
        return self.generate(f"amts{vindex}.avs")

    # --- CM / logo analysis stage ---

    def logo_tmp_file_path(self) -> Path:
        """Logo scan result shared by every video index."""
        return self.generate("logotmp.dat")

    def tmp_logo_frame_path(self, vindex: int) -> Path:
        return self.generate(f"logof{vindex}.txt")

    def tmp_chapter_exe_path(self, vindex: int) -> Path:
        return self.generate(f"chapter_exe{vindex}.txt")

    def tmp_chapter_exe_out_path(self, vindex: int) -> Path:
        return self.generate(f"chapter_exe_o{vindex}.txt")

    def tmp_trim_avs_path(self, vindex: int) -> Path:
        return self.generate(f"trim{vindex}.avs")

    def tmp_jls_path(self, vindex: int) -> Path:
        """CM cut list of video `vindex`, as written by join_logo_scp."""
        return self.generate(f"jls{vindex}.txt")

    # --- Per output variant ---

    def enc_video_file_path(self, vindex: int, index: int, cmtype: CMType) -> Path:
        """
        Elementary stream written by the encoder and read by the first mux step.

        Args:
            vindex: Video index of the output.
            index: Output index.
            cmtype: The output variant; its suffix is part of the name.

        Returns:
            Path: `<temp_dir>/v<vindex>-<index><suffix>.raw`, registered.

        Raises:
            NoTempDirectoryException: If no work directory is configured.
        """
        return self.generate(f"v{vindex}-{index}{cmtype.suffix}.raw")

    def timecode_file_path(self, vindex: int, index: int, cmtype: CMType) -> Path:
        """VFR timecode file that the timeline editor or mkvmerge applies to the video track."""
        return self.generate(f"v{vindex}-{index}{cmtype.suffix}.timecode.txt")

    def enc_stats_file_path(self, vindex: int, index: int, cmtype: CMType) -> Path:
        """
        Stats file for multi-pass encoding.

        x264 always writes a `.mbtree` and x265 a `.cutree` file next to the
        stats file, so both are registered as well.
        """
        path = self.generate(f"s{vindex}-{index}{cmtype.suffix}.log")
        self.register(path.with_name(path.name + ".mbtree"))
        self.register(path.with_name(path.name + ".cutree"))
        return path

    def int_audio_file_path(self, vindex: int, index: int, aindex: int, cmtype: CMType) -> Path:
        """Audio track `aindex` of the output, cut to the variant."""
        return self.generate(f"a{vindex}-{index}-{aindex}{cmtype.suffix}.aac")

    def tmp_ass_file_path(self, vindex: int, index: int, langindex: int, cmtype: CMType) -> Path:
        """ASS subtitles of language `langindex`. Only Matroska outputs carry them."""
        return self.generate(f"c{vindex}-{index}-{langindex}{cmtype.suffix}.ass")

    def tmp_srt_file_path(self, vindex: int, index: int, langindex: int, cmtype: CMType) -> Path:
        """SRT subtitles of language `langindex`."""
        return self.generate(f"c{vindex}-{index}-{langindex}{cmtype.suffix}.srt")

    def tmp_chapter_path(self, vindex: int, index: int, cmtype: CMType) -> Path:
        """Chapter list of the output, attached by the muxer or MP4Box."""
        return self.generate(f"chapter{vindex}-{index}{cmtype.suffix}.txt")

    def vfr_tmp_file_path(self, vindex: int, index: int, cmtype: CMType) -> Path:
        """Intermediate MP4 between the muxer and the timeline editor."""
        return self.generate(f"t{vindex}-{index}{cmtype.suffix}.mp4")

    # --- Teardown ---

    def clear_files(self):
        """Deletes every registered file. Files already removed by a tool are skipped."""
        for path in self._files:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete temporary file {path}: {e}")
        self._files.clear()

    def close(self):
        """Deletes the registered files, then the directory. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self.clear_files()
        self.temp_dir.remove()
