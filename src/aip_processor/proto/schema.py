# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Protobuf message classes for the `aip.processor.v2` wire format.

The file descriptor is assembled in code and registered in a private descriptor pool, so the message classes are
real protobuf messages without a protoc step. Field numbers, types and nesting follow the published
`processing-service-v2.proto`. The only deviation is that UasMetadata scalars carry explicit presence (proto3
`optional`), which keeps the wire encoding of set values unchanged while letting an omitted value be told apart
from a zero.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, duration_pb2, message_factory
from google.protobuf.descriptor import Descriptor, EnumDescriptor

PACKAGE = "aip.processor.v2"
FILE_NAME = "aip/processor/v2/processing-service-v2.proto"
SERVICE_NAME = f"{PACKAGE}.ProcessingService"

_Field = descriptor_pb2.FieldDescriptorProto

DOUBLE = _Field.TYPE_DOUBLE
FLOAT = _Field.TYPE_FLOAT
INT32 = _Field.TYPE_INT32
UINT32 = _Field.TYPE_UINT32
UINT64 = _Field.TYPE_UINT64
STRING = _Field.TYPE_STRING
MESSAGE = _Field.TYPE_MESSAGE
ENUM = _Field.TYPE_ENUM


def _ref(name: str) -> str:
    return name if name.startswith(".google") else f".{PACKAGE}.{name}"


def _field(
    name: str,
    number: int,
    field_type: int,
    type_name: str | None = None,
    repeated: bool = False,
    oneof: str | None = None,
    optional: bool = False,
) -> dict:
    return {
        "name": name,
        "number": number,
        "type": field_type,
        "type_name": type_name,
        "repeated": repeated,
        "oneof": oneof,
        "optional": optional,
    }


def _message(
    name: str,
    *fields: dict,
    nested: tuple[descriptor_pb2.DescriptorProto, ...] = (),
    enums: tuple[descriptor_pb2.EnumDescriptorProto, ...] = (),
) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    message.nested_type.extend(nested)
    message.enum_type.extend(enums)

    # real oneofs first, synthetic ones for proto3 optional fields after them
    oneofs = list(dict.fromkeys(f["oneof"] for f in fields if f["oneof"]))
    synthetic = [f"_{f['name']}" for f in fields if f["optional"]]
    for oneof_name in oneofs + synthetic:
        message.oneof_decl.add(name=oneof_name)
    oneof_index = {oneof_name: i for i, oneof_name in enumerate(oneofs + synthetic)}

    for definition in fields:
        field = message.field.add(
            name=definition["name"],
            number=definition["number"],
            type=definition["type"],
            label=_Field.LABEL_REPEATED if definition["repeated"] else _Field.LABEL_OPTIONAL,
        )
        if definition["type_name"]:
            field.type_name = _ref(definition["type_name"])
        if definition["oneof"]:
            field.oneof_index = oneof_index[definition["oneof"]]
        elif definition["optional"]:
            field.oneof_index = oneof_index[f"_{definition['name']}"]
            field.proto3_optional = True
    return message


def _enum(name: str, *values: str) -> descriptor_pb2.EnumDescriptorProto:
    enum = descriptor_pb2.EnumDescriptorProto(name=name)
    for number, value in enumerate(values):
        enum.value.add(name=value, number=number)
    return enum


def _raster_image(name: str) -> descriptor_pb2.DescriptorProto:
    return _message(name, _field("width", 1, INT32), _field("height", 2, INT32), _field("path", 3, STRING))


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Describe the processing service wire schema as a FileDescriptorProto."""
    proto = descriptor_pb2.FileDescriptorProto(
        name=FILE_NAME,
        package=PACKAGE,
        syntax="proto3",
        dependency=["google/protobuf/duration.proto"],
    )
    proto.enum_type.extend([_enum("ImageFormat", "RGB888", "PNG", "TIFF", "BGR888", "NITF21")])
    proto.message_type.extend(
        [
            _message(
                "ProcessorV2Config",
                _field("image_format", 1, ENUM, "ImageFormat"),
                _field("capabilities", 2, ENUM, "ProcessorV2Config.Capability", repeated=True),
                enums=(_enum("Capability", "GEO_REGISTER", "INFER", "TRACK"),),
            ),
            _message(
                "RequestHeader",
                _field("identifier", 1, MESSAGE, "Identifier"),
                _field("deadline", 2, MESSAGE, ".google.protobuf.Duration"),
                _field("timestamp", 3, MESSAGE, "Timestamp"),
            ),
            _message("Identifier", _field("stream_id", 1, UINT64), _field("frame_id", 2, UINT64)),
            _message("Timestamp", _field("nanos", 1, UINT64)),
            _message(
                "GeoRegistrationRequest",
                _field("header", 1, MESSAGE, "RequestHeader"),
                _field("frame", 2, MESSAGE, "Frame"),
            ),
            _message(
                "GeoRegistrationResponse",
                _field("identifier", 1, MESSAGE, "Identifier"),
                _field("geo_registration", 2, MESSAGE, "GeoRegistration"),
            ),
            _message(
                "InferenceRequest",
                _field("header", 1, MESSAGE, "RequestHeader"),
                _field("frame", 2, MESSAGE, "Frame"),
            ),
            _message(
                "InferenceResponse",
                _field("identifier", 1, MESSAGE, "Identifier"),
                _field("inferences", 2, MESSAGE, "Inferences"),
            ),
            _message(
                "TrackRequest",
                _field("header", 1, MESSAGE, "RequestHeader"),
                _field("frame", 2, MESSAGE, "Frame"),
                _field("inferences", 3, MESSAGE, "Inferences", oneof="maybe_inferences"),
                _field("geo_registration", 4, MESSAGE, "GeoRegistration", oneof="maybe_geo_registration"),
            ),
            _message(
                "GeoRegistration",
                _field("lattice", 1, MESSAGE, "Lattice"),
                _field("confidence", 2, DOUBLE),
                _field("updatedMetadata", 3, MESSAGE, "UasMetadata"),
            ),
            _message("Inferences", _field("inference", 1, MESSAGE, "Inference", repeated=True)),
            _message(
                "Inference",
                _field("inferenceId", 1, STRING),
                _field("box", 2, MESSAGE, "BoundingBox", oneof="inference"),
                _field("polygon", 3, MESSAGE, "BoundingPolygon", oneof="inference"),
                _field("geo_box", 5, MESSAGE, "GeoBoundingBox", oneof="inference"),
                _field("geo_polygon", 6, MESSAGE, "GeoBoundingPolygon", oneof="inference"),
                _field("velocity", 4, MESSAGE, "Velocity"),
            ),
            _message("GeoCoordinate", _field("latitude", 1, DOUBLE), _field("longitude", 2, DOUBLE)),
            _message(
                "BoundingBox",
                _field("c0", 1, MESSAGE, "UnitCoordinate"),
                _field("c1", 2, MESSAGE, "UnitCoordinate"),
                _field("classifications", 3, MESSAGE, "Classification", repeated=True),
            ),
            _message(
                "GeoBoundingBox",
                _field("c0", 1, MESSAGE, "GeoCoordinate"),
                _field("c1", 2, MESSAGE, "GeoCoordinate"),
                _field("classifications", 3, MESSAGE, "Classification", repeated=True),
            ),
            _message(
                "BoundingPolygon",
                _field("polygon", 1, MESSAGE, "Polygon"),
                _field("classifications", 2, MESSAGE, "Classification", repeated=True),
            ),
            _message(
                "GeoBoundingPolygon",
                _field("polygon", 1, MESSAGE, "GeoPolygon"),
                _field("classifications", 2, MESSAGE, "Classification", repeated=True),
            ),
            _message("Polygon", _field("vertices", 1, MESSAGE, "UnitCoordinate", repeated=True)),
            _message("GeoPolygon", _field("vertices", 1, MESSAGE, "GeoCoordinate", repeated=True)),
            _message("UnitCoordinate", _field("row", 1, DOUBLE), _field("col", 2, DOUBLE)),
            _message("Classification", _field("type", 1, STRING), _field("confidence", 2, DOUBLE)),
            _message(
                "Lattice",
                _field("earth_intersection", 1, MESSAGE, "Lattice.Point", repeated=True),
                nested=(
                    _message(
                        "Point",
                        _field("coordinate", 1, MESSAGE, "UnitCoordinate"),
                        _field("latitude", 2, DOUBLE),
                        _field("longitude", 3, DOUBLE),
                        _field("elevation", 4, DOUBLE),
                    ),
                ),
            ),
            _message("Velocity", _field("pixel", 4, MESSAGE, "PixelVelocityVector", oneof="velocity")),
            _message("PixelVelocityVector", _field("x", 1, DOUBLE), _field("y", 2, DOUBLE)),
            _message(
                "Frame",
                _field("image", 1, MESSAGE, "Image"),
                _field("uas_metadata", 2, MESSAGE, "UasMetadata"),
            ),
            _message(
                "Image",
                _field("rgb_image", 1, MESSAGE, "Rgb888Image", oneof="image"),
                _field("png_image", 2, MESSAGE, "PngImage", oneof="image"),
                _field("tiff_image", 3, MESSAGE, "TiffImage", oneof="image"),
                _field("bgr_image", 4, MESSAGE, "Bgr888Image", oneof="image"),
                _field("nitf21_image", 5, MESSAGE, "Nitf21Image", oneof="image"),
            ),
            _raster_image("Rgb888Image"),
            _raster_image("Bgr888Image"),
            _raster_image("PngImage"),
            _raster_image("TiffImage"),
            _message("Nitf21Image", _field("path", 1, STRING)),
            _message(
                "DigitalGlobeMetadata",
                _field("feature_id", 1, STRING),
                _field("source", 3, STRING),
                _field("niirs", 4, UINT32),
                _field("product_type", 6, STRING),
                _field("off_nadir_degrees", 7, DOUBLE),
                _field("sun_elevation_degrees", 8, DOUBLE),
                _field("sun_azimuth_degrees", 9, DOUBLE),
                _field("ground_sample_distance_centimeters", 10, UINT64),
                _field("top_left", 11, MESSAGE, "GeoCoordinate"),
                _field("top_right", 12, MESSAGE, "GeoCoordinate"),
                _field("bottom_right", 13, MESSAGE, "GeoCoordinate"),
                _field("bottom_left", 14, MESSAGE, "GeoCoordinate"),
            ),
            _message("ProviderMetadata", _field("digital_globe", 1, MESSAGE, "DigitalGlobeMetadata", oneof="metadata")),
            _message(
                "UasMetadata",
                _field("platform_heading_angle", 5, FLOAT, optional=True),
                _field("platform_pitch_angle", 6, FLOAT, optional=True),
                _field("platform_roll_angle", 7, FLOAT, optional=True),
                _field("sensor_latitude", 13, DOUBLE, optional=True),
                _field("sensor_longitude", 14, DOUBLE, optional=True),
                _field("sensor_true_altitude", 15, DOUBLE, optional=True),
                _field("sensor_horizontal_fov", 16, FLOAT, optional=True),
                _field("sensor_vertical_fov", 17, FLOAT, optional=True),
                _field("sensor_relative_azimuth_angle", 18, DOUBLE, optional=True),
                _field("sensor_relative_elevation_angle", 19, DOUBLE, optional=True),
                _field("sensor_relative_roll_angle", 20, DOUBLE, optional=True),
                _field("image_source_sensor", 21, STRING, optional=True),
                _field("provider_metadata", 22, MESSAGE, "ProviderMetadata"),
            ),
        ]
    )

    service = proto.service.add(name="ProcessingService")
    for method, request, response in (
        ("GeoRegister", "GeoRegistrationRequest", "GeoRegistrationResponse"),
        ("Infer", "InferenceRequest", "InferenceResponse"),
        ("Track", "TrackRequest", "InferenceResponse"),
    ):
        service.method.add(name=method, input_type=_ref(request), output_type=_ref(response))
    return proto


def _build_pool() -> descriptor_pool.DescriptorPool:
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(duration_pb2.DESCRIPTOR.serialized_pb)
    pool.AddSerializedFile(build_file_descriptor().SerializeToString())
    return pool


POOL = _build_pool()


def message_descriptor(name: str) -> Descriptor:
    return POOL.FindMessageTypeByName(f"{PACKAGE}.{name}")


def enum_descriptor(name: str) -> EnumDescriptor:
    return POOL.FindEnumTypeByName(f"{PACKAGE}.{name}")


def _message_class(name: str) -> type:
    return message_factory.GetMessageClass(message_descriptor(name))


ProcessorV2Config = _message_class("ProcessorV2Config")
RequestHeader = _message_class("RequestHeader")
Identifier = _message_class("Identifier")
Timestamp = _message_class("Timestamp")
GeoRegistrationRequest = _message_class("GeoRegistrationRequest")
GeoRegistrationResponse = _message_class("GeoRegistrationResponse")
InferenceRequest = _message_class("InferenceRequest")
InferenceResponse = _message_class("InferenceResponse")
TrackRequest = _message_class("TrackRequest")
GeoRegistration = _message_class("GeoRegistration")
Inferences = _message_class("Inferences")
Inference = _message_class("Inference")
GeoCoordinate = _message_class("GeoCoordinate")
BoundingBox = _message_class("BoundingBox")
GeoBoundingBox = _message_class("GeoBoundingBox")
BoundingPolygon = _message_class("BoundingPolygon")
GeoBoundingPolygon = _message_class("GeoBoundingPolygon")
Polygon = _message_class("Polygon")
GeoPolygon = _message_class("GeoPolygon")
UnitCoordinate = _message_class("UnitCoordinate")
Classification = _message_class("Classification")
Lattice = _message_class("Lattice")
LatticePoint = _message_class("Lattice.Point")
Velocity = _message_class("Velocity")
PixelVelocityVector = _message_class("PixelVelocityVector")
Frame = _message_class("Frame")
Image = _message_class("Image")
Rgb888Image = _message_class("Rgb888Image")
Bgr888Image = _message_class("Bgr888Image")
PngImage = _message_class("PngImage")
TiffImage = _message_class("TiffImage")
Nitf21Image = _message_class("Nitf21Image")
DigitalGlobeMetadata = _message_class("DigitalGlobeMetadata")
ProviderMetadata = _message_class("ProviderMetadata")
UasMetadata = _message_class("UasMetadata")
Duration = message_factory.GetMessageClass(POOL.FindMessageTypeByName("google.protobuf.Duration"))

IMAGE_FORMAT = enum_descriptor("ImageFormat")
CAPABILITY = enum_descriptor("ProcessorV2Config.Capability")
