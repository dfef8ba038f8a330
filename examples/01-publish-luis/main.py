"""
Publish LUIS Example

This example publishes a bot whose LU resources were already built by an
external tool (for example ``bf luis:build --out generated``):
1. Load a publish profile
2. Read the project files into a file store
3. Run the publisher with a builder that reuses the existing build output
4. Print the settings fragment to persist

Run: python examples/01-publish-luis/main.py profiles/dev.yaml /bots/foo greeting,order faq
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

from lupublish import FileInfo, LuisPublisher, ResourceReference, load_publish_profile
from lupublish.pipeline import LoggingNotifier, PublishError

# =============================================================================
# Builder
# =============================================================================


class PrebuiltBuilder:
    """LuBuilder that leaves an existing build output in place."""

    def __init__(self) -> None:
        self.root_dir = ""

    def set_build_config(self, config, downsampling) -> None:
        logging.info(f"Build region: {config['authoringRegion']}, downsampling: {dict(downsampling)}")

    async def build(self, lu_files, qna_files, all_files, empty_files) -> None:
        logging.info(
            f"Using existing build output under {self.root_dir} "
            f"({len(lu_files)} lu, {len(qna_files)} qna, {len(empty_files)} empty)"
        )

    async def copy_model_path_to_bot(self, is_adaptive: bool) -> None:
        pass


# =============================================================================
# File Store
# =============================================================================


def read_project_files(project_path: Path) -> dict[str, FileInfo]:
    """Index .lu/.qna files of a project by file name."""
    files: dict[str, FileInfo] = {}
    for path in sorted(project_path.rglob("*")):
        if path.suffix in (".lu", ".qna") and path.is_file():
            files[path.name] = FileInfo(
                name=path.name,
                content=path.read_text(encoding="utf-8"),
                path=str(path),
            )
    return files


# =============================================================================
# Main
# =============================================================================


async def main(profile_path: str, project_path: str, lu_ids: str, qna_ids: str = ""):
    profile = load_publish_profile(profile_path)
    files = read_project_files(Path(project_path))

    publisher = LuisPublisher(profile, PrebuiltBuilder(), notifier=LoggingNotifier())

    try:
        result = await publisher.publish(
            project_path=project_path,
            files=files,
            lu_resources=[ResourceReference(i) for i in lu_ids.split(",") if i],
            qna_resources=[ResourceReference(i) for i in qna_ids.split(",") if i],
        )
    except PublishError as e:
        print(f"Publish failed: {e}")
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    print()
    print("Settings to persist:")
    print(json.dumps(result.settings_patch, indent=2))
    return 0 if result.ok else 2


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 4:
        print(__doc__)
        sys.exit(1)
    sys.exit(asyncio.run(main(*sys.argv[1:5])))
