import subprocess
import threading
from unittest import mock

import pytest

from loadtools.prepare_prebuilt_workers import (
    build_command,
    image_name,
    main,
    parse_languages,
    push_command,
)

PREFIX = "registry.example.com/project"
TAG = "tag1"
ROOT = "containers/pre_built_workers"


class Recorder:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on
        self.lock = threading.Lock()

    def __call__(self, args, **kwargs):
        with self.lock:
            self.calls.append(list(args))
        code = 1 if self.fail_on and self.fail_on(args) else 0
        return subprocess.CompletedProcess(args, code, stdout="output")


def test_parse_languages_converts_names():
    assert parse_languages(
        ["c++:abc", "node_purejs:v1", "php7_protobuf_c:main", "python_asyncio:x"]
    ) == {"cxx": "abc", "node": "v1", "php7": "main", "python": "x"}


def test_parse_languages_keeps_other_names():
    assert parse_languages(["go:master", "java:v1.2"]) == {
        "go": "master",
        "java": "v1.2",
    }


def test_parse_languages_later_value_wins():
    assert parse_languages(["c++:first", "cxx:second"]) == {"cxx": "second"}


@pytest.mark.parametrize("pair", ["cxx", "cxx:", "a:b:c", ""])
def test_parse_languages_rejects_bad_pairs(pair):
    with pytest.raises(ValueError, match="language:gitref"):
        parse_languages([pair])


def test_image_name():
    assert image_name(PREFIX, "cxx", TAG) == f"{PREFIX}/cxx:{TAG}"


def test_build_command():
    command = build_command(PREFIX, TAG, ROOT, "go", "master", "breaker")
    assert command == [
        "timeout",
        "1800s",
        "docker",
        "build",
        f"{ROOT}/go/",
        "-t",
        image_name(PREFIX, "go", TAG),
        "--build-arg",
        "GITREF=master",
        "--build-arg",
        "BREAK_CACHE=breaker",
    ]


def test_push_command():
    assert push_command("img:tag") == ["docker", "push", "img:tag"]


@pytest.mark.parametrize(
    "argv",
    [
        ["-t", TAG, "-r", ROOT, "-l", "go:master"],
        ["-p", PREFIX, "-r", ROOT, "-l", "go:master"],
        ["-p", PREFIX, "-t", "x" * 129, "-r", ROOT, "-l", "go:master"],
        ["-p", PREFIX, "-t", TAG, "-l", "go:master"],
        ["-p", PREFIX, "-t", TAG, "-r", ROOT],
        ["-p", PREFIX, "-t", TAG, "-r", ROOT, "-l", "go"],
    ],
)
def test_main_rejects_bad_arguments(argv):
    recorder = Recorder()
    with mock.patch(
        "loadtools.prepare_prebuilt_workers.subprocess.run", side_effect=recorder
    ):
        assert main(argv) == 1
    assert recorder.calls == []


def test_main_builds_and_pushes():
    recorder = Recorder()
    with mock.patch(
        "loadtools.prepare_prebuilt_workers.subprocess.run", side_effect=recorder
    ):
        status = main(
            ["-p", PREFIX, "-t", TAG, "-r", ROOT, "-l", "c++:abc", "-l", "go:master"]
        )
    assert status == 0
    builds = [call for call in recorder.calls if call[0] == "timeout"]
    pushes = [call for call in recorder.calls if call[:2] == ["docker", "push"]]
    assert sorted(call[:-1] for call in builds) == sorted(
        build_command(PREFIX, TAG, ROOT, lang, ref, "")[:-1]
        for lang, ref in [("cxx", "abc"), ("go", "master")]
    )
    assert len({call[-1] for call in builds}) == 1
    assert sorted(pushes) == sorted(
        push_command(image_name(PREFIX, lang, TAG)) for lang in ["cxx", "go"]
    )


def test_main_build_only_skips_push():
    recorder = Recorder()
    with mock.patch(
        "loadtools.prepare_prebuilt_workers.subprocess.run", side_effect=recorder
    ):
        status = main(
            ["-p", PREFIX, "-build-only", "-t", TAG, "-r", ROOT, "-l", "go:master"]
        )
    assert status == 0
    assert [call[0] for call in recorder.calls] == ["timeout"]


def test_main_reports_build_failure():
    recorder = Recorder(fail_on=lambda args: args[0] == "timeout")
    with mock.patch(
        "loadtools.prepare_prebuilt_workers.subprocess.run", side_effect=recorder
    ):
        status = main(["-p", PREFIX, "-t", TAG, "-r", ROOT, "-l", "go:master"])
    assert status == 1
    assert all(call[0] == "timeout" for call in recorder.calls)


def test_main_reports_push_failure():
    recorder = Recorder(fail_on=lambda args: args[:2] == ["docker", "push"])
    with mock.patch(
        "loadtools.prepare_prebuilt_workers.subprocess.run", side_effect=recorder
    ):
        status = main(["-p", PREFIX, "-t", TAG, "-r", ROOT, "-l", "go:master"])
    assert status == 1
    assert recorder.calls[-1] == push_command(image_name(PREFIX, "go", TAG))