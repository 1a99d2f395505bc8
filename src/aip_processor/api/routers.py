# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from fastapi import APIRouter

processing_router = APIRouter()
processor_router = APIRouter()
