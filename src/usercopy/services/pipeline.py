"""Producer-to-consumer byte streaming between two hosts."""

import subprocess
import tempfile
from typing import List

from usercopy.constants import COMMAND_NOT_FOUND_STATUS
from usercopy.models import PipelineResult


class StreamPipeline:
    """Pipes a producer process on the source side straight into a consumer on the target side.

    Nothing is buffered on the orchestrating machine beyond the OS pipe, so
    local-to-remote, remote-to-remote and same-host copies behave alike.
    """

    def __init__(self, logger, subprocess_module=subprocess):
        self.logger = logger
        self.subprocess = subprocess_module

    def run(self, producer_cmd: List[str], consumer_cmd: List[str]) -> PipelineResult:
        self.logger.debug(
            "Streaming: %s | %s",
            " ".join(producer_cmd),
            " ".join(consumer_cmd),
        )

        with tempfile.TemporaryFile() as producer_stderr:
            try:
                producer = self.subprocess.Popen(
                    producer_cmd,
                    stdout=self.subprocess.PIPE,
                    stderr=producer_stderr,
                )
            except OSError as exc:
                return PipelineResult(
                    producer_status=COMMAND_NOT_FOUND_STATUS,
                    consumer_status=COMMAND_NOT_FOUND_STATUS,
                    error=f"Failed to start producer {producer_cmd[0]}: {exc}",
                )

            try:
                consumer = self.subprocess.Popen(
                    consumer_cmd,
                    stdin=producer.stdout,
                    stdout=self.subprocess.PIPE,
                    stderr=self.subprocess.PIPE,
                )
            except OSError as exc:
                producer.kill()
                producer.wait()
                producer.stdout.close()
                return PipelineResult(
                    producer_status=producer.returncode,
                    consumer_status=COMMAND_NOT_FOUND_STATUS,
                    error=f"Failed to start consumer {consumer_cmd[0]}: {exc}",
                )

            # Let the producer see SIGPIPE if the consumer exits early.
            producer.stdout.close()
            _, consumer_err = consumer.communicate()
            producer.wait()

            producer_stderr.seek(0)
            producer_err = producer_stderr.read()

        errors = [
            text.decode("utf-8", errors="replace").strip()
            for text in (producer_err, consumer_err)
            if text
        ]
        result = PipelineResult(
            producer_status=producer.returncode,
            consumer_status=consumer.returncode,
            error="\n".join(error for error in errors if error),
        )
        if not result.ok:
            self.logger.debug(
                "Stream failed (producer=%s, consumer=%s): %s",
                result.producer_status,
                result.consumer_status,
                result.error,
            )
        return result
