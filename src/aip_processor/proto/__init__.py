# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Wire format of the processing service."""

from .wire import check_oneof_exclusivity, parse_message

__all__ = ["check_oneof_exclusivity", "parse_message"]
