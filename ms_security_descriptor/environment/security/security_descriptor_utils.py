""" Utilities for decoding Active Directory Security Descriptors.

An Active Directory Security Descriptor details what different users and groups can and
cannot do on an object.
So rather than users/groups/etc. having a rule on them that says "this entity can do these
things", the security descriptor in a windows model says "this is what other entities can
do to this one."

The security descriptor is a header followed by up to 2 ACLs and 2 SIDs, which the header
points at using offsets from the start of the descriptor. Each decoding function here takes
the bytes and a position to start reading from, and returns what it decoded along with the
number of bytes it consumed. So a caller holding an entire descriptor can decode any piece
of it from the offset the header gives.
"""
# Created in October 2026
#
# Author: Azaria Zornberg
#
# Copyright 2021 - 2026 Azaria Zornberg
#
# This file is part of ms_security_descriptor
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import binascii
import uuid

from struct import calcsize, unpack_from
from typing import Tuple, Union

from ms_security_descriptor import logging_utils
from ms_security_descriptor.core.security_descriptor_objects import (
    ACE,
    ACE_TYPE_MAP,
    ACL,
    AceFlags,
    AcePayload,
    ObjectAccessAce,
    ObjectAceFlags,
    ObjectSid,
    SecurityDescriptorControl,
    SecurityDescriptorHeader,
    SelfRelativeSecurityDescriptor,
    SimpleAccessAce,
    UnrecognizedAce,
)
from ms_security_descriptor.environment.security.security_descriptor_constants import (
    ACE_BODY,
    ACE_COUNT,
    ACE_FLAGS,
    ACE_HEADER_FMT,
    ACE_HEADER_SIZE_BYTES,
    ACE_SIZE,
    ACE_TYPE,
    ACE_TYPE_VALUE_TO_NAME_MAP,
    ACES,
    ACL_HEADER_FMT,
    ACL_REVISION,
    ACL_SIZE,
    CONTROL,
    DACL,
    DATA,
    FLAGS,
    GROUP_SID,
    GUID_SIZE_BYTES,
    HEADER,
    IDENTIFIER_AUTHORITY,
    INHERITED_OBJECT_TYPE,
    MASK,
    OBJECT_TYPE,
    OFFSET_DACL,
    OFFSET_GROUP,
    OFFSET_OWNER,
    OFFSET_SACL,
    OWNER_SID,
    REVISION,
    SACL,
    SBZ1,
    SBZ2,
    SECURITY_DESCRIPTOR_HEADER_FMT,
    SECURITY_DESCRIPTOR_HEADER_SIZE_BYTES,
    SID,
    SID_IDENTIFIER_AUTHORITY_SIZE_BYTES,
    SID_PREFIX_FMT,
    SID_SUB_AUTHORITY_SIZE_BYTES,
    SUB_AUTHORITY,
    SUB_AUTHORITY_COUNT,
    UINT32_FMT,
    UNKNOWN_ACE_TYPE_NAME,
)
from ms_security_descriptor.exceptions import (
    InconsistentLengthException,
    InvalidAceSizeException,
    InvalidSecurityDescriptorParameterException,
    TruncatedInputException,
)

logger = logging_utils.get_logger()


def _validate_data_and_position(data: Union[bytes, bytearray, memoryview], position: int) -> bytes:
    """ Make sure we were handed something bytes-like and a position that isn't negative, and
    return the data as bytes so that slicing it always gives us bytes back.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidSecurityDescriptorParameterException('Security descriptor data must be bytes-like, not {}'
                                                          .format(type(data)))
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise InvalidSecurityDescriptorParameterException('Position to decode from must be a non-negative '
                                                          'integer, not {}'.format(position))
    if isinstance(data, bytes):
        return data
    return bytes(data)


def _check_bytes_remaining(data: bytes, position: int, bytes_needed: int, what: str):
    """ Raise a TruncatedInputException if there aren't at least bytes_needed bytes left in the data
    starting from the given position.
    """
    available = max(len(data) - position, 0)
    if available < bytes_needed:
        raise TruncatedInputException('Reading {} requires {} bytes at position {}, but only {} bytes remain.'
                                      .format(what, bytes_needed, position, available),
                                      position=position, needed=bytes_needed, available=available)


def _read_format_and_then_move_position(data: bytes, position: int, fmt: str, what: str) -> Tuple[tuple, int]:
    """ Read a struct format from the data starting at the given position, move our position
    forward by the size of the format, and return the values read and the new position.
    """
    size = calcsize(fmt)
    _check_bytes_remaining(data, position, size, what)
    return unpack_from(fmt, data, position), position + size


def _read_bytes_and_then_move_position(data: bytes, position: int, bytes_to_read: int,
                                       what: str) -> Tuple[bytes, int]:
    """ Read some number of literal bytes from the data starting at the given position, move our
    position forward, and return the bytes read and the new position.
    """
    _check_bytes_remaining(data, position, bytes_to_read, what)
    new_position = position + bytes_to_read
    return data[position:new_position], new_position


def _read_guid_and_then_move_position(data: bytes, position: int, what: str) -> Tuple[uuid.UUID, int]:
    """ GUIDs are stored with their first 3 components little-endian, which is exactly the layout
    that uuid's bytes_le expects.
    """
    guid_bytes, position = _read_bytes_and_then_move_position(data, position, GUID_SIZE_BYTES, what)
    return uuid.UUID(bytes_le=guid_bytes), position


def decode_sid(data: bytes, position: int = 0) -> Tuple[ObjectSid, int]:
    """ Decode a SID starting at the given position in the data.
    The SID header says how many 4 byte sub-authorities follow it, so a SID takes up
    8 + 4 * sub_authority_count bytes.

    :param data: The bytes containing the SID.
    :param position: The position of the first byte of the SID. Defaults to 0.
    :returns: A tuple of the decoded ObjectSid and the number of bytes consumed.
    :raises TruncatedInputException: If the data ends before the SID does.
    """
    data = _validate_data_and_position(data, position)
    start = position
    # we don't validate the revision. every SID in use today is revision 1, but there's no range
    # of values we could say is wrong
    (revision, sub_authority_count), position = _read_format_and_then_move_position(data, position, SID_PREFIX_FMT,
                                                                                    'SID revision and count')
    authority_bytes, position = _read_bytes_and_then_move_position(data, position,
                                                                   SID_IDENTIFIER_AUTHORITY_SIZE_BYTES,
                                                                   'SID identifier authority')
    # the identifier authority is the one big-endian value in a security descriptor
    identifier_authority = int.from_bytes(authority_bytes, 'big')

    # check for all of the sub-authorities at once so a huge count fails before we read any of them
    _check_bytes_remaining(data, position, sub_authority_count * SID_SUB_AUTHORITY_SIZE_BYTES,
                           '{} SID sub-authorities'.format(sub_authority_count))
    sub_authorities = []
    for _ in range(sub_authority_count):
        (sub_authority,), position = _read_format_and_then_move_position(data, position, UINT32_FMT,
                                                                         'SID sub-authority')
        sub_authorities.append(sub_authority)

    sid = ObjectSid(raw_data=data[start:position], **{
        REVISION: revision,
        SUB_AUTHORITY_COUNT: sub_authority_count,
        IDENTIFIER_AUTHORITY: identifier_authority,
        SUB_AUTHORITY: tuple(sub_authorities),
    })
    return sid, position - start


def _decode_sid_occupying_remainder_of_body(body: bytes, position: int, ace_type: int, strict: bool) -> ObjectSid:
    """ The SID is always the last thing in the ACE bodies we decode, and takes up the rest of the
    body. Windows pads ACEs to 4 byte alignment and some producers leave extra bytes at the end of
    an ACE, so left over bytes are allowed unless we're decoding strictly.
    """
    sid, sid_length = decode_sid(body, position)
    leftover = len(body) - position - sid_length
    if leftover:
        if strict:
            raise InconsistentLengthException('ACE of type {} has {} bytes after its SID, but its SID should end '
                                              'its body.'.format(ace_type, leftover))
        logger.debug('Ignoring %s bytes after the SID in an ACE of type %s', leftover, ace_type)
    return sid


def _decode_simple_access_ace_body(payload_class, body: bytes, ace_type: int, strict: bool) -> SimpleAccessAce:
    (mask,), position = _read_format_and_then_move_position(body, 0, UINT32_FMT, 'ACE access mask')
    sid = _decode_sid_occupying_remainder_of_body(body, position, ace_type, strict)
    return payload_class(raw_data=body, **{
        MASK: mask,
        SID: sid,
    })


def _decode_object_access_ace_body(payload_class, body: bytes, ace_type: int, strict: bool) -> ObjectAccessAce:
    (mask,), position = _read_format_and_then_move_position(body, 0, UINT32_FMT, 'ACE access mask')
    (flags_value,), position = _read_format_and_then_move_position(body, position, UINT32_FMT, 'object ACE flags')
    flags = ObjectAceFlags(flags_value)

    # each GUID is only in the body if its flag is set. when it isn't, it takes up no space at all,
    # so everything after it (including the SID) starts 16 bytes earlier
    object_type = None
    if flags.object_type_present():
        object_type, position = _read_guid_and_then_move_position(body, position, 'object type GUID')

    inherited_object_type = None
    if flags.inherited_object_type_present():
        inherited_object_type, position = _read_guid_and_then_move_position(body, position,
                                                                            'inherited object type GUID')

    sid = _decode_sid_occupying_remainder_of_body(body, position, ace_type, strict)
    return payload_class(raw_data=body, **{
        MASK: mask,
        FLAGS: flags,
        OBJECT_TYPE: object_type,
        INHERITED_OBJECT_TYPE: inherited_object_type,
        SID: sid,
    })


def decode_ace_payload(ace_type: int, body: bytes, strict: bool = False) -> AcePayload:
    """ Decode the body of an ACE, which is everything after the 4 byte ACE header, according to
    the ACE's type.
    Access allowed/denied ACEs and their object variants are decoded. Every other ACE type is kept
    as an UnrecognizedAce holding the exact bytes of the body, so that an ACL with one ACE we
    don't understand can still be decoded.

    :param ace_type: The type from the ACE header.
    :param body: Exactly the bytes of the ACE body.
    :param strict: If True, bytes left over after the SID in the body raise an
                   InconsistentLengthException. Defaults to False.
    :returns: The decoded body.
    """
    body = _validate_data_and_position(body, 0)
    payload_class = ACE_TYPE_MAP.get(ace_type)
    if payload_class is None:
        logger.debug('Passing through the %s byte body of an ACE with unrecognized type %s (%s)', len(body),
                     ace_type, ACE_TYPE_VALUE_TO_NAME_MAP.get(ace_type, UNKNOWN_ACE_TYPE_NAME))
        return UnrecognizedAce(raw_data=body, **{DATA: body})
    if issubclass(payload_class, ObjectAccessAce):
        return _decode_object_access_ace_body(payload_class, body, ace_type, strict)
    return _decode_simple_access_ace_body(payload_class, body, ace_type, strict)


def decode_ace(data: bytes, position: int = 0, strict: bool = False) -> Tuple[ACE, int]:
    """ Decode an ACE starting at the given position in the data.
    The ACE header includes the size of the entire ACE, and the body is cut to exactly that size
    before it's decoded, so a malformed body can never be read past the end of its own ACE.

    :param data: The bytes containing the ACE.
    :param position: The position of the first byte of the ACE. Defaults to 0.
    :param strict: Whether to decode the body strictly. See decode_ace_payload.
    :returns: A tuple of the decoded ACE and the number of bytes consumed, which is the ACE's size.
    :raises InvalidAceSizeException: If the ACE declares a size smaller than its header.
    :raises TruncatedInputException: If the data ends before the ACE does.
    """
    data = _validate_data_and_position(data, position)
    start = position
    (ace_type, ace_flags, ace_size), position = _read_format_and_then_move_position(data, position, ACE_HEADER_FMT,
                                                                                    'ACE header')
    if ace_size < ACE_HEADER_SIZE_BYTES:
        raise InvalidAceSizeException('ACE at position {} declares a size of {} bytes, which is smaller than the '
                                      '{} byte ACE header.'.format(start, ace_size, ACE_HEADER_SIZE_BYTES))
    body, position = _read_bytes_and_then_move_position(data, position, ace_size - ACE_HEADER_SIZE_BYTES, 'ACE body')
    payload = decode_ace_payload(ace_type, body, strict=strict)

    ace = ACE(raw_data=data[start:position], **{
        ACE_TYPE: ace_type,
        ACE_FLAGS: AceFlags(ace_flags),
        ACE_SIZE: ace_size,
        ACE_BODY: payload,
    })
    return ace, position - start


def decode_acl(data: bytes, position: int = 0, strict: bool = False) -> Tuple[ACL, int]:
    """ Decode an ACL starting at the given position in the data.
    The ACL header says how many ACEs follow it, and each ACE starts right where the previous one
    ended.

    The ACL header also has a size, but plenty of real world producers of security descriptors
    don't keep it in agreement with the ACEs. So by default a mismatch is only logged.

    :param data: The bytes containing the ACL.
    :param position: The position of the first byte of the ACL. Defaults to 0.
    :param strict: If True, raise an InconsistentLengthException when the ACL size doesn't match
                   the size of the header plus its ACEs, and decode every ACE strictly.
                   Defaults to False.
    :returns: A tuple of the decoded ACL and the number of bytes consumed, which is the size of the
              header plus the sizes of all of the ACEs.
    :raises TruncatedInputException: If the data ends before all of the ACEs have been decoded.
    """
    data = _validate_data_and_position(data, position)
    start = position
    header, position = _read_format_and_then_move_position(data, position, ACL_HEADER_FMT, 'ACL header')
    acl_revision, sbz1, acl_size, ace_count, sbz2 = header

    aces = []
    for _ in range(ace_count):
        ace, ace_length = decode_ace(data, position, strict=strict)
        aces.append(ace)
        position += ace_length

    consumed = position - start
    if consumed != acl_size:
        if strict:
            raise InconsistentLengthException('ACL at position {} declares a size of {} bytes, but its header and '
                                              '{} ACEs take up {} bytes.'.format(start, acl_size, ace_count, consumed))
        logger.debug('ACL at position %s declares a size of %s bytes but its header and ACEs take up %s bytes',
                     start, acl_size, consumed)
    logger.debug('Decoded %s ACEs from ACL at position %s', ace_count, start)

    acl = ACL(raw_data=data[start:position], **{
        ACL_REVISION: acl_revision,
        SBZ1: sbz1,
        ACL_SIZE: acl_size,
        ACE_COUNT: ace_count,
        SBZ2: sbz2,
        ACES: tuple(aces),
    })
    return acl, consumed


def decode_security_descriptor_header(data: bytes, position: int = 0) -> Tuple[SecurityDescriptorHeader, int]:
    """ Decode the fixed 20 byte header of a self-relative security descriptor.
    This does not follow the offsets in the header. Use decode_sid and decode_acl with the
    offsets to decode those pieces, or decode_security_descriptor to decode everything.

    :param data: The bytes containing the header.
    :param position: The position of the first byte of the header. Defaults to 0.
    :returns: A tuple of the decoded header and the number of bytes consumed, which is always 20.
    :raises TruncatedInputException: If fewer than 20 bytes remain.
    """
    data = _validate_data_and_position(data, position)
    start = position
    values, position = _read_format_and_then_move_position(data, position, SECURITY_DESCRIPTOR_HEADER_FMT,
                                                           'security descriptor header')
    revision, sbz1, control, offset_owner, offset_group, offset_sacl, offset_dacl = values
    header = SecurityDescriptorHeader(raw_data=data[start:position], **{
        REVISION: revision,
        SBZ1: sbz1,
        CONTROL: SecurityDescriptorControl(control),
        OFFSET_OWNER: offset_owner,
        OFFSET_GROUP: offset_group,
        OFFSET_SACL: offset_sacl,
        OFFSET_DACL: offset_dacl,
    })
    return header, SECURITY_DESCRIPTOR_HEADER_SIZE_BYTES


def decode_security_descriptor(data: bytes, strict: bool = False) -> Tuple[SelfRelativeSecurityDescriptor, int]:
    """ Decode an entire self-relative security descriptor, such as the value of the
    nTSecurityDescriptor attribute of an object read over LDAP.
    The header is decoded first, and then the owner SID, group SID, SACL and DACL are each decoded
    from the offset the header gives for them, if that offset isn't 0.

    :param data: The bytes of the entire security descriptor.
    :param strict: Whether to decode the ACLs strictly. See decode_acl.
    :returns: A tuple of the decoded security descriptor and the furthest position reached while
              decoding any of its parts.
    """
    data = _validate_data_and_position(data, 0)
    header, furthest_position = decode_security_descriptor_header(data)

    # All these fields are optional, if the offset is 0 they are empty
    owner_sid = None
    if header.has_owner():
        owner_sid, length = decode_sid(data, header[OFFSET_OWNER])
        furthest_position = max(furthest_position, header[OFFSET_OWNER] + length)

    group_sid = None
    if header.has_group():
        group_sid, length = decode_sid(data, header[OFFSET_GROUP])
        furthest_position = max(furthest_position, header[OFFSET_GROUP] + length)

    sacl = None
    if header.has_sacl():
        sacl, length = decode_acl(data, header[OFFSET_SACL], strict=strict)
        furthest_position = max(furthest_position, header[OFFSET_SACL] + length)

    dacl = None
    if header.has_dacl():
        dacl, length = decode_acl(data, header[OFFSET_DACL], strict=strict)
        furthest_position = max(furthest_position, header[OFFSET_DACL] + length)

    security_descriptor = SelfRelativeSecurityDescriptor(raw_data=data[:furthest_position], **{
        HEADER: header,
        OWNER_SID: owner_sid,
        GROUP_SID: group_sid,
        SACL: sacl,
        DACL: dacl,
    })
    return security_descriptor, furthest_position


def decode_security_descriptor_from_hex(hex_string: str, strict: bool = False
                                        ) -> Tuple[SelfRelativeSecurityDescriptor, int]:
    """ Decode an entire self-relative security descriptor that has been hex encoded, as they
    often are in LDAP dumps and logs. Whitespace and a leading 0x are ignored.
    """
    if not isinstance(hex_string, str):
        raise InvalidSecurityDescriptorParameterException('Security descriptor hex must be a string, not {}'
                                                          .format(type(hex_string)))
    normalized = ''.join(hex_string.split())
    if normalized.lower().startswith('0x'):
        normalized = normalized[2:]
    try:
        data = binascii.unhexlify(normalized)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecurityDescriptorParameterException('Security descriptor hex string could not be decoded: {}'
                                                          .format(e))
    return decode_security_descriptor(data, strict=strict)
