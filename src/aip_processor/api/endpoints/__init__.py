# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from . import processing, processor

__all__ = ["processing", "processor"]
