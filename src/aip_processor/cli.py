# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""This module contains the AIP Processor CLI."""

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

from jsonargparse import ActionConfigFile, ArgumentParser, Namespace
from pydantic import BaseModel

from aip_processor.domain.schemas.mappers.messages import (
    geo_registration_request_proto_to_schema,
    inference_request_proto_to_schema,
    track_request_proto_to_schema,
)
from aip_processor.exceptions import ErrorKind, ProtocolError
from aip_processor.proto import parse_message
from aip_processor.proto import schema as pb
from aip_processor.settings import get_settings

RequestType = Literal["GeoRegistrationRequest", "InferenceRequest", "TrackRequest"]

_REQUEST_PARSERS: dict[str, tuple[type, Callable[[Any], BaseModel]]] = {
    "GeoRegistrationRequest": (pb.GeoRegistrationRequest, geo_registration_request_proto_to_schema),
    "InferenceRequest": (pb.InferenceRequest, inference_request_proto_to_schema),
    "TrackRequest": (pb.TrackRequest, track_request_proto_to_schema),
}


def setup_logger(log_level: str = "INFO") -> None:
    """Setup console logging for the package."""
    logging.basicConfig(
        level=log_level.upper(),
        format=get_settings().log_format,
        stream=sys.stdout,
        force=True,
    )
    # grpc is noisy at debug level
    logging.getLogger("grpc").setLevel(logging.INFO)


class InspectionResult(BaseModel):
    """Outcome of running a serialized request through the validation gate."""

    path: str
    request_type: RequestType
    valid: bool
    error_kind: ErrorKind | None = None
    error: str | None = None
    request: dict[str, Any] | None = None


def inspect_request(path: Path, request_type: RequestType) -> InspectionResult:
    """Decode a serialized request and validate it the same way the servers do, without dispatching it."""
    message_cls, to_schema = _REQUEST_PARSERS[request_type]
    try:
        request = to_schema(parse_message(message_cls, path.read_bytes()))
    except ProtocolError as e:
        return InspectionResult(
            path=str(path), request_type=request_type, valid=False, error_kind=e.kind, error=str(e)
        )
    return InspectionResult(
        path=str(path), request_type=request_type, valid=True, request=request.model_dump(mode="json")
    )


class AipProcessorCLI:
    """This class is the entry point for the AIP Processor CLI."""

    def __init__(self, args: list[str] | None = None) -> None:
        """Initialize the AIP Processor CLI."""
        self.parser = ArgumentParser(description="AIP Processor CLI", env_prefix="aip_processor")
        self._add_subcommands()
        self.execute(args)

    @staticmethod
    def add_serve_arguments(parser: ArgumentParser) -> None:
        """Add arguments for the serve subcommand."""
        settings = get_settings()
        parser.add_argument("--host", type=str, default=settings.grpc_host, help="Address to bind the gRPC server to.")
        parser.add_argument("--port", type=int, default=settings.grpc_port, help="Port of the gRPC server.")
        parser.add_argument(
            "--max_workers", type=int, default=settings.grpc_max_workers, help="Threads serving gRPC calls."
        )

    @staticmethod
    def add_serve_http_arguments(parser: ArgumentParser) -> None:
        """Add arguments for the serve-http subcommand."""
        settings = get_settings()
        parser.add_argument("--host", type=str, default=settings.host, help="Address to bind the HTTP server to.")
        parser.add_argument("--port", type=int, default=settings.port, help="Port of the HTTP server.")

    @staticmethod
    def add_inspect_arguments(parser: ArgumentParser) -> None:
        """Add arguments for the inspect subcommand."""
        parser.add_argument("--path", type=Path, required=True, help="File holding one serialized request.")
        parser.add_argument(
            "--request_type",
            type=RequestType,
            default="InferenceRequest",
            help="Protobuf message type stored in the file.",
        )

    def execute(self, args: list[str] | None = None) -> None:
        """Execute the CLI."""
        cfg = self.parser.parse_args(args)
        setup_logger(log_level=cfg[cfg.subcommand].log_level)
        self._execute_subcommands(cfg)

    @staticmethod
    def _aip_processor_subcommands() -> dict[str, str]:
        """Returns the subcommands and help messages for each subcommand."""
        return {
            "serve": "Serve the processing service over gRPC.",
            "serve-http": "Serve the processing service over HTTP.",
            "inspect": "Validate a serialized request without processing it.",
        }

    def _add_subcommands(self) -> None:
        """Registers the subcommands for the CLI."""
        parser_subcommands = self.parser.add_subcommands()

        for name, description in self._aip_processor_subcommands().items():
            parser = ArgumentParser(description=description)
            self._add_common_args(parser)
            getattr(self, f"add_{name.replace('-', '_')}_arguments")(parser)
            parser_subcommands.add_subcommand(name, parser)

    @staticmethod
    def _add_common_args(parser: ArgumentParser) -> None:
        """Adds common arguments for all subcommands."""
        parser.add_argument("--config", action=ActionConfigFile)
        parser.add_argument(
            "--log_level",
            type=str,
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level.",
        )

    @staticmethod
    def _execute_subcommands(config: Namespace) -> None:
        """Execute the appropriate subcommand based on the config.

        Args:
            config: The configuration namespace.

        Raises:
            ValueError: If the subcommand is invalid.
        """
        subcommand = config.subcommand
        match subcommand:
            case "serve":
                from aip_processor.runtime.components import ProcessingRuntime
                from aip_processor.transport.grpc_service import serve

                runtime = ProcessingRuntime(get_settings())
                try:
                    serve(
                        runtime.dispatcher,
                        host=config.serve.host,
                        port=config.serve.port,
                        max_workers=config.serve.max_workers,
                    )
                finally:
                    runtime.stop()
            case "serve-http":
                from aip_processor.main import main as serve_http

                serve_http(host=config["serve-http"].host, port=config["serve-http"].port)
            case "inspect":
                result = inspect_request(config.inspect.path, config.inspect.request_type)
                print(result.model_dump_json(indent=2))
                if not result.valid:
                    sys.exit(1)
            case _:
                msg = f"Invalid subcommand: {subcommand}"
                raise ValueError(msg)


def main() -> None:
    """Main function for the CLI."""
    AipProcessorCLI()


if __name__ == "__main__":
    main()
