# loadtools

Helpers for organising batches of load tests into queues and reporting on
them as xUnit (JUnit-style) XML, plus two command-line tools for managing
prebuilt worker container images.

## Installation

    pip install .

Install the test extra to run the test suite:

    pip install ".[test]"
    pytest

## Library

- `loadtools.configs`: read load test configurations (as plain dicts) from
  YAML files whose documents are separated by lines of exactly `---`
  (`decode_from_files`, `decode_from_file`, `decode_documents`). A document
  that is not a mapping raises `ValueError`.
- `loadtools.queues`: read a configuration's annotations (`annotations`),
  group configurations into execution queues by an annotation
  (`queue_selector_from_annotation`, `create_queue_map`), check that every
  queue has a concurrency level (`validate_concurrency_levels`, raises
  `ValueError`), count tests per queue (`count_configs`) and build a
  `str.format` template for aligned log prefixes (`log_prefix_fmt`).
- `loadtools.flags`: accumulate input file names (`FileNames.add`) and
  concurrency levels of the form `[<queue name>:]<level>`
  (`ConcurrencyLevels.add`); invalid values raise `ValueError`.
- `loadtools.reporter`: `Reporter`, `TestSuiteReporter` and
  `TestCaseReporter` log test progress through `logging` and fill an xUnit
  report with suites, cases, errors, properties and timings;
  `test_case_name_from_annotations` derives test case names from
  annotation values.
- `loadtools.logsaver`: save non-empty container logs to files named
  `<pod>-<container>.log` (`save_all_logs`, `save_log`, `log_file_name`).
  Logs are fetched through a `read_log(pod, container_name)` callable you
  supply; pods are described by `PodInfo`. Failures raise `LogSaveError`.
- `loadtools.properties`: build pod name and pod log properties for test
  cases (`pod_name_properties`, `pod_log_properties`, `pod_name_elem`,
  `pod_name_property_key`, `pod_log_property_key`, `LogInfo`).
- `loadtools.xunit`: the report model (`Report`, `TestSuite`, `TestCase`,
  `TestError`, `Property`), counter recomputation (`Report.finalize`),
  per-suite reports (`Report.split`), XML output (`Report.to_xml`,
  `Report.write_to_stream` with `ReportWritingOptions`, raising
  `ReportWriteError`), `dashify` and `output_path`.

Example:

    import sys
    from datetime import datetime

    from loadtools.configs import decode_from_files
    from loadtools.queues import (
        create_queue_map,
        log_prefix_fmt,
        queue_selector_from_annotation,
    )
    from loadtools.reporter import Reporter, test_case_name_from_annotations
    from loadtools.xunit import Report, ReportWritingOptions

    configs = decode_from_files(["tests.yaml"])
    queues = create_queue_map(configs, queue_selector_from_annotation("pool"))

    report = Report()
    reporter = Reporter(report)
    reporter.start(datetime.now())
    prefix = log_prefix_fmt(queues)
    for name, queued in queues.items():
        suite = reporter.new_test_suite_reporter(
            name, prefix, test_case_name_from_annotations("scenario")
        )
        for config in queued:
            case = suite.new_test_case_reporter(config)
            case.info("recorded %s", name)
    reporter.finish(datetime.now())

    report.finalize()
    report.write_to_stream(sys.stdout, ReportWritingOptions(indent_size=2))

## Commands

Build (and optionally push) prebuilt worker images for selected languages:

    prepare-prebuilt-workers -p registry/prefix -t mytag -r containers/pre_built_workers -l cxx:master -l go:master

Each `-l` value has the form `language:gitref`; the names `c++`,
`node_purejs`, `php7_protobuf_c` and `python_asyncio` map to the images
`cxx`, `node`, `php7` and `python`. Pass `--build-only` to skip pushing.
Images are built in parallel with `docker` under a 30 minute `timeout`.
The tag may be at most 128 characters.

Delete or untag every image carrying a tag within a registry prefix:

    delete-prebuilt-workers -p registry/prefix -t mytag

Images that carry other tags as well are untagged instead of deleted. This
command uses `gcloud`.

Both commands exit with status 1 when a required option is missing or
invalid.

## What this package does not do

It does not connect to a cluster: it does not create, poll or delete load
tests, list pods or stream their logs, and there is no command that runs a
batch of load tests end to end. The pieces here (configuration decoding,
queueing, reporting, log saving and XML output) are meant to be driven by
your own code, which supplies the cluster access, for example as the
`read_log` callable of `loadtools.logsaver`.