# telemetry_analyzer/profile/schema.py - pprof wire schema
"""
Message classes for the pprof ``perftools.profiles`` protocol buffer.

The descriptor is assembled in code and registered in a private pool, so no
generated ``profile_pb2`` module is needed.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory


PACKAGE = 'perftools.profiles'

_I64 = descriptor_pb2.FieldDescriptorProto.TYPE_INT64
_U64 = descriptor_pb2.FieldDescriptorProto.TYPE_UINT64
_BOOL = descriptor_pb2.FieldDescriptorProto.TYPE_BOOL
_STR = descriptor_pb2.FieldDescriptorProto.TYPE_STRING
_MSG = descriptor_pb2.FieldDescriptorProto.TYPE_MESSAGE

# (name, number, type, repeated, message type)
MESSAGES = {
    'Profile': [
        ('sample_type', 1, _MSG, True, 'ValueType'),
        ('sample', 2, _MSG, True, 'Sample'),
        ('mapping', 3, _MSG, True, 'Mapping'),
        ('location', 4, _MSG, True, 'Location'),
        ('function', 5, _MSG, True, 'Function'),
        ('string_table', 6, _STR, True, None),
        ('drop_frames', 7, _I64, False, None),
        ('keep_frames', 8, _I64, False, None),
        ('time_nanos', 9, _I64, False, None),
        ('duration_nanos', 10, _I64, False, None),
        ('period_type', 11, _MSG, False, 'ValueType'),
        ('period', 12, _I64, False, None),
        ('comment', 13, _I64, True, None),
        ('default_sample_type', 14, _I64, False, None),
    ],
    'ValueType': [
        ('type', 1, _I64, False, None),
        ('unit', 2, _I64, False, None),
    ],
    'Sample': [
        ('location_id', 1, _U64, True, None),
        ('value', 2, _I64, True, None),
        ('label', 3, _MSG, True, 'Label'),
    ],
    'Label': [
        ('key', 1, _I64, False, None),
        ('str', 2, _I64, False, None),
        ('num', 3, _I64, False, None),
        ('num_unit', 4, _I64, False, None),
    ],
    'Mapping': [
        ('id', 1, _U64, False, None),
        ('memory_start', 2, _U64, False, None),
        ('memory_limit', 3, _U64, False, None),
        ('file_offset', 4, _U64, False, None),
        ('filename', 5, _I64, False, None),
        ('build_id', 6, _I64, False, None),
        ('has_functions', 7, _BOOL, False, None),
        ('has_filenames', 8, _BOOL, False, None),
        ('has_line_numbers', 9, _BOOL, False, None),
        ('has_inline_frames', 10, _BOOL, False, None),
    ],
    'Location': [
        ('id', 1, _U64, False, None),
        ('mapping_id', 2, _U64, False, None),
        ('address', 3, _U64, False, None),
        ('line', 4, _MSG, True, 'Line'),
        ('is_folded', 5, _BOOL, False, None),
    ],
    'Line': [
        ('function_id', 1, _U64, False, None),
        ('line', 2, _I64, False, None),
        ('column', 3, _I64, False, None),
    ],
    'Function': [
        ('id', 1, _U64, False, None),
        ('name', 2, _I64, False, None),
        ('system_name', 3, _I64, False, None),
        ('filename', 4, _I64, False, None),
        ('start_line', 5, _I64, False, None),
    ],
}


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name='telemetry_analyzer/profile.proto',
        package=PACKAGE,
        syntax='proto3',
    )

    for message_name, fields in MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)
        for name, number, field_type, repeated, type_name in fields:
            field = message.field.add(
                name=name,
                number=number,
                type=field_type,
                label=(descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED if repeated
                       else descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL),
            )
            if type_name:
                field.type_name = f'.{PACKAGE}.{type_name}'

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f'{PACKAGE}.{name}'))


Profile = _message_class('Profile')
ValueType = _message_class('ValueType')
Sample = _message_class('Sample')
Label = _message_class('Label')
Mapping = _message_class('Mapping')
Location = _message_class('Location')
Line = _message_class('Line')
Function = _message_class('Function')
