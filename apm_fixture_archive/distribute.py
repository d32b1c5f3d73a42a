from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from .layout import archive_output_files, metadata_path, profile_archive_dir
from .metadata import update_metadata
from .models import ArchiveConfig, ProfileResult, TimeWindow
from .utils import ensure_dir, sha256_file

LOGGER = logging.getLogger(__name__)


def distribute_to_profile(config: ArchiveConfig, profile: str, window: TimeWindow) -> ProfileResult:
    target_dir = ensure_dir(profile_archive_dir(config, profile))
    result = ProfileResult(
        profile=profile,
        archive_dir=target_dir,
        metadata_path=metadata_path(config, profile),
    )

    for source in archive_output_files(config):
        dest = target_dir / source.name
        shutil.copyfile(source, dest)
        result.copied_files.append(dest)
        result.checksums[source.name] = sha256_file(dest)

    merged = update_metadata(result.metadata_path, config.archive_name, window)
    result.entries = len(merged)
    LOGGER.info(
        "Updated %s fixtures: %s (%s archive entries)",
        profile,
        result.metadata_path,
        result.entries,
    )
    return result


def distribute_archive(config: ArchiveConfig, window: TimeWindow) -> list[ProfileResult]:
    """Copy the saved archive into every profile and record the window.

    Profiles are updated concurrently. The first failure is re-raised once all
    tasks have finished; profiles that already succeeded keep their changes.
    """
    results: dict[str, ProfileResult] = {}
    futures = {}
    with ThreadPoolExecutor(max_workers=max(1, len(config.profiles))) as pool:
        for profile in config.profiles:
            fut = pool.submit(distribute_to_profile, config, profile, window)
            futures[fut] = profile

        for fut in tqdm(as_completed(futures), total=len(futures), desc=config.archive_name):
            profile = futures[fut]
            results[profile] = fut.result()

    return [results[profile] for profile in config.profiles]
