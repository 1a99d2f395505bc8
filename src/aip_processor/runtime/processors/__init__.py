# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from .base import ProcessingService
from .factory import ProcessorFactory
from .passthrough import PassthroughProcessor

__all__ = ["PassthroughProcessor", "ProcessingService", "ProcessorFactory"]
