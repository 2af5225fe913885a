"""Delete or untag the images that carry a given tag in a container registry."""

from __future__ import annotations

import argparse
import enum
import logging
import subprocess
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], "tuple[int, str]"]


class ImageAction(enum.Enum):
    """What was done to the image of one repository."""

    MISSING = "missing"
    UNTAGGED = "untagged"
    DELETED = "deleted"


def _run(args: Sequence[str]) -> tuple[int, str]:
    """Run a command; return its exit status and combined output."""
    try:
        completed = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as exc:
        return 1, str(exc)
    return completed.returncode, completed.stdout or ""


def repositories_from_listing(output: str) -> list[str]:
    """Return repository names from an image listing, skipping its header line."""
    return [line for line in output.split("\n")[1:] if line]


def tag_count_from_listing(output: str) -> int:
    """Return how many tags the listed image has, or 0 if no image is listed.

    Raises ValueError if the first image line has no tags column.
    """
    lines = output.split("\n")
    if len(lines) <= 2:
        return 0
    fields = lines[1].split()
    if len(fields) < 2:
        raise ValueError(f"malformed image tag listing line: {lines[1]!r}")
    return len(fields[1].split(","))


def delete_images(
    image_prefix: str, tag: str, run: CommandRunner | None = None
) -> dict[str, ImageAction]:
    """Untag or delete the image with the tag in every repository under the prefix.

    An image that has other tags too is only untagged; otherwise it is
    deleted. The action taken is returned for each repository.
    """
    run = run or _run
    logger.info(
        "start to process all images within %s having tag: %s", image_prefix, tag
    )
    code, listing = run(
        ["gcloud", "container", "images", "list", f"--repository={image_prefix}"]
    )
    if code != 0:
        logger.warning(
            "Failed getting repositories within %s: %s", image_prefix, listing
        )
    logger.info("All image repositories within specified registry: %s", image_prefix)
    logger.info("%s", listing)

    actions: dict[str, ImageAction] = {}
    for repository in repositories_from_listing(listing):
        logger.info("Processing image repository: %s", repository)
        image = f"{repository}:{tag}"

        code, tag_listing = run(
            ["gcloud", "container", "images", "list-tags", repository, f"--filter={tag}"]
        )
        if code != 0:
            logger.warning(
                "Failed getting image: %s with tag %s: %s", repository, tag, tag_listing
            )

        tag_count = tag_count_from_listing(tag_listing)
        if tag_count == 0:
            logger.info("Tag: %s is not presented.", tag)
            actions[repository] = ImageAction.MISSING
            continue

        if tag_count > 1:
            logger.info(
                "Image have multiple tags, including %s, untag the image with tag %s "
                "instead of deleting image",
                tag,
                tag,
            )
            code, output = run(["gcloud", "-q", "container", "images", "untag", image])
            if code != 0:
                logger.warning("Failed untagging %s: %s", image, output)
            else:
                logger.info("Succeeded untagging %s", image)
            actions[repository] = ImageAction.UNTAGGED
        else:
            code, output = run(["gcloud", "-q", "container", "images", "delete", image])
            if code != 0:
                logger.warning("Failed deleting image %s : %s", image, output)
            else:
                logger.info("Succeeded deleting %s", image)
            actions[repository] = ImageAction.DELETED

    logger.info(
        "All images with tag: %s within container registry: %s are processed.",
        tag,
        image_prefix,
    )
    return actions


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="delete_prebuilt_workers", allow_abbrev=False
    )
    parser.add_argument(
        "-p", dest="image_prefix", default="", help="set the root repository for search"
    )
    parser.add_argument(
        "-t", dest="tag", default="", help="images with this tag will be deleted"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not args.image_prefix:
        logger.error("no root repository is provided")
        return 1
    if not args.tag:
        logger.error("no image tag is provided")
        return 1

    delete_images(args.image_prefix, args.tag)
    return 0