# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import importlib

from aip_processor.runtime.processors.base import ProcessingService
from aip_processor.runtime.processors.passthrough import PassthroughProcessor


class ProcessorFactory:
    @classmethod
    def create(cls, name: str) -> ProcessingService:
        """
        Create the processor named in settings.

        `name` is either "passthrough" or an import path of the form "package.module:ClassName" pointing at a
        ProcessingService subclass with a no-argument constructor.
        """
        match name.split(":"):
            case ["passthrough"]:
                return PassthroughProcessor()
            case [module_name, class_name] if module_name and class_name:
                processor_cls = getattr(importlib.import_module(module_name), class_name)
                if not (isinstance(processor_cls, type) and issubclass(processor_cls, ProcessingService)):
                    raise TypeError(f"{name} is not a ProcessingService subclass")
                return processor_cls()
            case _:
                raise ValueError(f"Unknown processor {name!r}, expected 'passthrough' or 'module:ClassName'")
