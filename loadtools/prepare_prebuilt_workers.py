"""Build, and optionally push, prebuilt worker images for selected languages."""

from __future__ import annotations

import argparse
import json
import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 128
BUILD_TIMEOUT_SECONDS = 30 * 60

_IMAGE_LANGUAGES = {
    "c++": "cxx",
    "node_purejs": "node",
    "php7_protobuf_c": "php7",
    "python_asyncio": "python",
}


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


def parse_languages(pairs: Iterable[str]) -> dict[str, str]:
    """Map image languages to git refs from values of the form language:gitref.

    Scenario language names are converted to the names of their images.
    Raises ValueError on a value that is not of that form.
    """
    languages: dict[str, str] = {}
    for pair in pairs:
        parts = pair.split(":")
        if len(parts) != 2 or not parts[-1]:
            raise ValueError(
                "Input error in language and gitref selection, please follow the "
                "format as language:gitref, for example: c++:<commit-sha>"
            )
        lang, gitref = parts
        languages[_IMAGE_LANGUAGES.get(lang, lang)] = gitref
    return languages


def image_name(image_prefix: str, lang: str, tag: str) -> str:
    """Return the full name of a language's image."""
    return f"{image_prefix}/{lang}:{tag}"


def build_command(
    image_prefix: str,
    tag: str,
    dockerfile_root: str,
    lang: str,
    gitref: str,
    cache_breaker: str,
) -> list[str]:
    """Return the command that builds a language's image under a time limit."""
    return [
        "timeout",
        f"{BUILD_TIMEOUT_SECONDS}s",
        "docker",
        "build",
        f"{dockerfile_root}/{lang}/",
        "-t",
        image_name(image_prefix, lang, tag),
        "--build-arg",
        f"GITREF={gitref}",
        "--build-arg",
        f"BREAK_CACHE={cache_breaker}",
    ]


def push_command(image: str) -> list[str]:
    """Return the command that pushes an image to its registry."""
    return ["docker", "push", image]


def _process(
    args: argparse.Namespace, lang: str, gitref: str, cache_breaker: str
) -> bool:
    image = image_name(args.image_prefix, lang, args.tag)
    logger.info("building %s image", lang)
    code, output = _run(
        build_command(
            args.image_prefix, args.tag, args.dockerfile_root, lang, gitref, cache_breaker
        )
    )
    if code != 0:
        logger.error(
            "Failed building %s image. Dump of command's output will follow:", lang
        )
        logger.error("%s", output)
        logger.error("Failed building %s image: exit status %d", lang, code)
        return False
    logger.info(
        "Succeeded building %s image. Dump of command's output will follow:", lang
    )
    logger.info("%s", output)
    logger.info("Succeeded building %s image: %s", lang, image)

    if args.build_only:
        return True

    logger.info("pushing %s image", lang)
    code, output = _run(push_command(image))
    if code != 0:
        logger.error(
            "Failed pushing %s image. Dump of command's output will follow:", lang
        )
        logger.error("%s", output)
        logger.error("Failed pushing %s image: exit status %d", lang, code)
        return False
    logger.info(
        "Succeeded pushing %s image. Dump of command's output will follow:", lang
    )
    logger.info("%s", output)
    logger.info("Succeeded pushing %s image to %s", lang, image)
    return True


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="prepare_prebuilt_workers", allow_abbrev=False
    )
    parser.add_argument(
        "-p", dest="image_prefix", default="", help="image registry to push images"
    )
    parser.add_argument(
        "-build-only",
        "--build-only",
        dest="build_only",
        action="store_true",
        help="do not push the images to a container registry",
    )
    parser.add_argument(
        "-t", dest="tag", default="", help="tag for the pre-built images of this test"
    )
    parser.add_argument(
        "-r",
        dest="dockerfile_root",
        default="",
        help="root directory of Dockerfiles to build prebuilt images",
    )
    parser.add_argument(
        "-l",
        dest="languages",
        action="append",
        default=[],
        help="language and its GITREF, example: cxx:<commit-sha>",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not args.image_prefix:
        logger.error(
            "No registry provided, please provide a container registry. If the "
            "images are not intended to be pushed to a registry, please provide a "
            "prefix for naming the built images"
        )
        return 1
    if not args.tag:
        logger.error("Failed preparing prebuilt images: no image tag provided")
        return 1
    if len(args.tag) > MAX_TAG_LENGTH:
        logger.error(
            "Failed preparing prebuilt images: invalid tag name, a tag name may not "
            "start with a period or a dash and may contain a maximum of 128 "
            "characters."
        )
        return 1
    if not args.dockerfile_root:
        logger.error(
            "Fail preparing prebuilt images: no root directory for Dockerfiles provided"
        )
        return 1
    if not args.languages:
        logger.error(
            "Failed preparing prebuilt images: no language and its gitref pair "
            "specified, please provide languages and the GITREF as cxx:master"
        )
        return 1

    try:
        languages = parse_languages(args.languages)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Selected language : GITREF")
    logger.info("%s", json.dumps(languages, indent=2, sort_keys=True))

    cache_breaker = str(datetime.now())
    with ThreadPoolExecutor(max_workers=len(languages)) as pool:
        futures = [
            pool.submit(_process, args, lang, gitref, cache_breaker)
            for lang, gitref in languages.items()
        ]
        results = [future.result() for future in futures]

    if not all(results):
        return 1
    logger.info("All images are processed")
    return 0