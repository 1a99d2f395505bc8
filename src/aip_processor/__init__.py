# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Correlation and validation layer of the aerial imagery processing protocol."""

__version__ = "0.1.0"
