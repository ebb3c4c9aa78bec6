""" Value objects produced by decoding Active Directory Security Descriptors.

Every structure here is built once by the decoders in security_descriptor_utils and never
changes afterwards. Fields can be read by name, the same way they're named in the MS-DTYP
documentation (e.g. sid[SUB_AUTHORITY_COUNT] or ace[ACE_SIZE]), or through the get_* functions
on each class.
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

from ldap3.utils.conv import escape_bytes
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ms_security_descriptor.environment.security.ad_security_guids import get_ad_guid_enum_for_guid
from ms_security_descriptor.environment.security.security_descriptor_constants import (
    ACCESS_ALLOWED_ACE_TYPE,
    ACCESS_ALLOWED_OBJECT_ACE_TYPE,
    ACCESS_DENIED_ACE_TYPE,
    ACCESS_DENIED_OBJECT_ACE_TYPE,
    ACE_BODY,
    ACE_COUNT,
    ACE_FLAGS,
    ACE_FLAG_VALUE_TO_NAME_MAP,
    ACE_SIZE,
    ACE_TYPE,
    ACE_TYPE_VALUE_TO_NAME_MAP,
    ACES,
    ACL_REVISION,
    ACL_SIZE,
    CONTROL,
    DACL,
    DATA,
    FLAGS,
    GROUP_SID,
    HEADER,
    IDENTIFIER_AUTHORITY,
    INHERITED_OBJECT_TYPE,
    MASK,
    MAX_DECIMAL_IDENTIFIER_AUTHORITY,
    OBJECT_ACE_FLAG_VALUE_TO_NAME_MAP,
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
    SECURITY_DESCRIPTOR_CONTROL_VALUE_TO_NAME_MAP,
    SID,
    SUB_AUTHORITY,
    SUB_AUTHORITY_COUNT,
    UNKNOWN_ACE_TYPE_NAME,
    WELL_KNOWN_SID_STR_TO_ENUM,
    WellKnownSID,
)


class Flags(object):
    """ A bitmask read out of a security descriptor.
    Sub-classes say which bits have names. Bits without a name are kept as-is rather than being
    rejected, since Microsoft reserves them for future use and we'd rather pass through a value
    we don't understand than refuse to decode the whole structure.
    """
    FLAG_NAMES = {}
    REPR_NAME = 'Flags'

    def __init__(self, value: int):
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def has_flag(self, flag: int) -> bool:
        return self.value & flag == flag

    def get_flag_names(self) -> List[str]:
        """ Get the names of all of the known bits that are set, lowest bit first """
        return [name for bit, name in sorted(self.FLAG_NAMES.items()) if self.has_flag(bit)]

    def get_unknown_bits(self) -> int:
        known_bits = 0
        for bit in self.FLAG_NAMES:
            known_bits |= bit
        return self.value & ~known_bits

    def __int__(self):
        return self.value

    def __index__(self):
        return self.value

    def __eq__(self, other):
        # flags compare equal to plain ints so callers can check them against constants
        if isinstance(other, Flags):
            return type(self) is type(other) and self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return False

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return '{}(value={})'.format(self.REPR_NAME, hex(self.value))

    def __str__(self):
        names = self.get_flag_names()
        unknown = self.get_unknown_bits()
        if unknown:
            names.append(hex(unknown))
        return '|'.join(names) if names else '0x0'


class AceFlags(Flags):
    """ The inheritance and auditing flags in an ACE header """
    OBJECT_INHERIT_ACE = 0x01
    CONTAINER_INHERIT_ACE = 0x02
    NO_PROPAGATE_INHERIT_ACE = 0x04
    INHERIT_ONLY_ACE = 0x08
    INHERITED_ACE = 0x10
    SUCCESSFUL_ACCESS_ACE_FLAG = 0x40
    FAILED_ACCESS_ACE_FLAG = 0x80

    FLAG_NAMES = ACE_FLAG_VALUE_TO_NAME_MAP
    REPR_NAME = 'AceFlags'


class ObjectAceFlags(Flags):
    """ The flags at the start of an object ACE body, which say which optional GUIDs follow """
    ACE_OBJECT_TYPE_PRESENT = 0x01
    ACE_INHERITED_OBJECT_TYPE_PRESENT = 0x02

    FLAG_NAMES = OBJECT_ACE_FLAG_VALUE_TO_NAME_MAP
    REPR_NAME = 'ObjectAceFlags'

    def object_type_present(self) -> bool:
        return self.has_flag(self.ACE_OBJECT_TYPE_PRESENT)

    def inherited_object_type_present(self) -> bool:
        return self.has_flag(self.ACE_INHERITED_OBJECT_TYPE_PRESENT)


class SecurityDescriptorControl(Flags):
    """ The control bits of a security descriptor header """
    SE_DACL_PRESENT = 0x0004
    SE_SACL_PRESENT = 0x0010
    SE_DACL_AUTO_INHERITED = 0x0400
    SE_SACL_AUTO_INHERITED = 0x0800
    SE_DACL_PROTECTED = 0x1000
    SE_SACL_PROTECTED = 0x2000
    SE_SELF_RELATIVE = 0x8000

    FLAG_NAMES = SECURITY_DESCRIPTOR_CONTROL_VALUE_TO_NAME_MAP
    REPR_NAME = 'SecurityDescriptorControl'


class AccessMask(object):
    """
    ACCESS_MASK bits as described in 2.4.3
    https://msdn.microsoft.com/en-us/library/cc230294.aspx
    Masks are decoded as plain ints; this just names the bits worth checking for.
    """
    GENERIC_READ = 0x80000000
    GENERIC_WRITE = 0x40000000
    GENERIC_EXECUTE = 0x20000000
    GENERIC_ALL = 0x10000000
    MAXIMUM_ALLOWED = 0x02000000
    ACCESS_SYSTEM_SECURITY = 0x01000000
    SYNCHRONIZE = 0x00100000
    WRITE_OWNER = 0x00080000
    WRITE_DACL = 0x00040000
    READ_CONTROL = 0x00020000
    DELETE = 0x00010000

    # directory service specific rights
    ADS_RIGHT_DS_CONTROL_ACCESS = 0x00000100
    ADS_RIGHT_DS_CREATE_CHILD = 0x00000001
    ADS_RIGHT_DS_DELETE_CHILD = 0x00000002
    ADS_RIGHT_DS_LIST_CONTENTS = 0x00000004
    ADS_RIGHT_DS_SELF = 0x00000008
    ADS_RIGHT_DS_READ_PROP = 0x00000010
    ADS_RIGHT_DS_WRITE_PROP = 0x00000020
    ADS_RIGHT_DS_DELETE_TREE = 0x00000040
    ADS_RIGHT_DS_LIST_OBJECT = 0x00000080


class Structure(object):
    """ This is the base class for every decoded structure.
    A structure is defined by the ordered names of its fields. The decoders supply a value for
    each field along with the exact bytes the structure was read from, and after that the
    structure is read-only.

    Structures act a bit like dictionaries for reading, so that fields can be looked up with the
    same names used in the MS-DTYP documentation. Fields that a structure doesn't define can be
    probed with get_field, which returns None for them.
    """
    structure = ()
    REPR_NAME = 'Structure'

    def __init__(self, raw_data: bytes = b'', **fields):
        unexpected = set(fields) - set(self.structure)
        if unexpected:
            raise TypeError('Unexpected fields for {}: {}'.format(self.REPR_NAME, ', '.join(sorted(unexpected))))
        self._fields = {name: fields.get(name) for name in self.structure}
        self._raw_data = bytes(raw_data)

    @property
    def fields(self) -> Mapping:
        # fields are fixed once decoded, the hash is computed from them
        return MappingProxyType(self._fields)

    @property
    def raw_data(self) -> bytes:
        return self._raw_data

    def get_data(self) -> bytes:
        """ Get the bytes this structure was decoded from """
        return self.raw_data

    def get_field(self, field_name: str):
        return self.fields.get(field_name)

    def keys(self):
        return self.fields.keys()

    def values(self):
        return self.fields.values()

    def items(self):
        return self.fields.items()

    def __getitem__(self, key: str):
        return self.fields[key]

    def __contains__(self, key: str):
        return key in self.fields

    def __setitem__(self, key: str, value):
        raise TypeError('{} objects are read-only once decoded'.format(self.REPR_NAME))

    def __delitem__(self, key: str):
        raise TypeError('{} objects are read-only once decoded'.format(self.REPR_NAME))

    def __len__(self):
        return len(self.raw_data)

    def __bool__(self):
        # a structure with no bytes, like an empty ACE body, still exists
        return True

    def __eq__(self, other):
        if not isinstance(other, Structure) or type(self) is not type(other):
            return False
        return self._fields == other._fields

    def __hash__(self):
        return hash((type(self), tuple(self._fields.values())))

    def __str__(self):
        # our data cannot necessarily be encoded as a string, so convert it to hex
        return '0x' + binascii.hexlify(self.raw_data).decode('UTF-8')

    def __repr__(self):
        field_reprs = ', '.join('{}={!r}'.format(name, value) for name, value in self.fields.items())
        return '{}({})'.format(self.REPR_NAME, field_reprs)


class ObjectSid(Structure):
    """
    SID as described in 2.4.2
    https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/78eb9013-1c3a-4970-ad1f-2b1dad588a25
    The identifier authority is kept as an int, decoded from its 6 big-endian bytes. The
    sub-authorities are a tuple of ints in the order they were encoded.
    """
    structure = (REVISION, SUB_AUTHORITY_COUNT, IDENTIFIER_AUTHORITY, SUB_AUTHORITY)
    REPR_NAME = 'ObjectSid'

    def get_revision(self) -> int:
        return self[REVISION]

    def get_sub_authority_count(self) -> int:
        return self[SUB_AUTHORITY_COUNT]

    def get_identifier_authority(self) -> int:
        return self[IDENTIFIER_AUTHORITY]

    def get_sub_authorities(self) -> Tuple[int, ...]:
        return self[SUB_AUTHORITY]

    def get_relative_identifier(self) -> Optional[int]:
        """ The RID is the last sub-authority. SIDs without sub-authorities have none. """
        if not self[SUB_AUTHORITY]:
            return None
        return self[SUB_AUTHORITY][-1]

    def to_canonical_string_format(self) -> str:
        authority = self[IDENTIFIER_AUTHORITY]
        if authority < MAX_DECIMAL_IDENTIFIER_AUTHORITY:
            authority_str = '%d' % authority
        else:
            authority_str = '0x%012X' % authority
        ans = 'S-%d-%s' % (self[REVISION], authority_str)
        for sub_authority in self[SUB_AUTHORITY]:
            ans += '-%d' % sub_authority
        return ans

    def to_ldap_filter_string_format(self) -> str:
        """ Get the SID in a format that can be used to search for it, e.g. (objectSid=<this>) """
        return escape_bytes(self.raw_data)

    def get_well_known_sid(self) -> Optional[WellKnownSID]:
        return WELL_KNOWN_SID_STR_TO_ENUM.get(self.to_canonical_string_format())

    def __str__(self):
        return self.to_canonical_string_format()


class AcePayload(Structure):
    """ The base of all ACE bodies.
    Callers shouldn't need to know which kind of body an ACE has just to ask it for a mask or SID,
    so the accessors for all of the fields any body might have live here, and return None when the
    body doesn't have that field.
    """
    ACE_TYPE = None
    REPR_NAME = 'AcePayload'

    def get_mask(self) -> Optional[int]:
        return self.get_field(MASK)

    def get_sid(self) -> Optional[ObjectSid]:
        return self.get_field(SID)

    def get_flags(self) -> Optional[ObjectAceFlags]:
        return self.get_field(FLAGS)

    def get_object_type(self) -> Optional[uuid.UUID]:
        return self.get_field(OBJECT_TYPE)

    def get_inherited_object_type(self) -> Optional[uuid.UUID]:
        return self.get_field(INHERITED_OBJECT_TYPE)

    def get_object_type_name(self) -> Optional[str]:
        guid_enum = get_ad_guid_enum_for_guid(self.get_object_type())
        return guid_enum.name if guid_enum is not None else None

    def get_inherited_object_type_name(self) -> Optional[str]:
        guid_enum = get_ad_guid_enum_for_guid(self.get_inherited_object_type())
        return guid_enum.name if guid_enum is not None else None

    def has_privilege(self, priv: int) -> bool:
        mask = self.get_mask()
        if mask is None:
            return False
        return mask & priv == priv


class SimpleAccessAce(AcePayload):
    """ The body shared by ACCESS_ALLOWED_ACE and ACCESS_DENIED_ACE: a mask and a SID """
    structure = (MASK, SID)
    REPR_NAME = 'SimpleAccessAce'


class AccessAllowedAce(SimpleAccessAce):
    """
    ACCESS_ALLOWED_ACE as described in 2.4.4.2
    https://msdn.microsoft.com/en-us/library/cc230286.aspx
    """
    ACE_TYPE = ACCESS_ALLOWED_ACE_TYPE
    REPR_NAME = 'AccessAllowedAce'


class AccessDeniedAce(SimpleAccessAce):
    """
    ACCESS_DENIED_ACE as described in 2.4.4.4
    https://msdn.microsoft.com/en-us/library/cc230291.aspx
    Structure is identical to ACCESS_ALLOWED_ACE
    """
    ACE_TYPE = ACCESS_DENIED_ACE_TYPE
    REPR_NAME = 'AccessDeniedAce'


class ObjectAccessAce(AcePayload):
    """ The body shared by ACCESS_ALLOWED_OBJECT_ACE and ACCESS_DENIED_OBJECT_ACE.
    The object type and inherited object type are only present when the matching flag is set.
    When absent they're None and took up no bytes in the body.
    """
    structure = (MASK, FLAGS, OBJECT_TYPE, INHERITED_OBJECT_TYPE, SID)
    REPR_NAME = 'ObjectAccessAce'


class AccessAllowedObjectAce(ObjectAccessAce):
    """
    ACCESS_ALLOWED_OBJECT_ACE as described in 2.4.4.3
    https://msdn.microsoft.com/en-us/library/cc230289.aspx
    """
    ACE_TYPE = ACCESS_ALLOWED_OBJECT_ACE_TYPE
    REPR_NAME = 'AccessAllowedObjectAce'


class AccessDeniedObjectAce(ObjectAccessAce):
    """
    ACCESS_DENIED_OBJECT_ACE as described in 2.4.4.5
    https://msdn.microsoft.com/en-us/library/gg750297.aspx
    Structure is identical to ACCESS_ALLOWED_OBJECT_ACE
    """
    ACE_TYPE = ACCESS_DENIED_OBJECT_ACE_TYPE
    REPR_NAME = 'AccessDeniedObjectAce'


class UnrecognizedAce(AcePayload):
    """ The body of any ACE type we don't decode. The bytes are kept exactly as they were so
    nothing gets lost, and so that one exotic ACE doesn't stop the rest of its ACL from decoding.
    """
    structure = (DATA,)
    REPR_NAME = 'UnrecognizedAce'

    def get_raw_body(self) -> bytes:
        return self[DATA]


# The ACE types we decode bodies for
ACE_TYPES = [
    AccessAllowedAce,
    AccessDeniedAce,
    AccessAllowedObjectAce,
    AccessDeniedObjectAce,
]

# A dict of the decodable ACE types indexed by their type number
ACE_TYPE_MAP = {ace.ACE_TYPE: ace for ace in ACE_TYPES}


class ACE(Structure):
    """
    ACE as described in 2.4.4
    https://msdn.microsoft.com/en-us/library/cc230295.aspx
    The header fields are kept alongside the decoded body. The accessors for the body's fields
    are passed through so callers can go straight from an ACE to its mask or SID.
    """
    structure = (ACE_TYPE, ACE_FLAGS, ACE_SIZE, ACE_BODY)
    REPR_NAME = 'ACE'

    def get_ace_type(self) -> int:
        return self[ACE_TYPE]

    def get_ace_type_name(self) -> str:
        return ACE_TYPE_VALUE_TO_NAME_MAP.get(self[ACE_TYPE], UNKNOWN_ACE_TYPE_NAME)

    def get_ace_flags(self) -> AceFlags:
        return self[ACE_FLAGS]

    def get_ace_size(self) -> int:
        return self[ACE_SIZE]

    def get_body(self) -> AcePayload:
        return self[ACE_BODY]

    def is_recognized(self) -> bool:
        return not isinstance(self[ACE_BODY], UnrecognizedAce)

    def has_flag(self, flag: int) -> bool:
        return self[ACE_FLAGS].has_flag(flag)

    def is_inherited(self) -> bool:
        return self.has_flag(AceFlags.INHERITED_ACE)

    def get_mask(self) -> Optional[int]:
        return self[ACE_BODY].get_mask()

    def get_sid(self) -> Optional[ObjectSid]:
        return self[ACE_BODY].get_sid()

    def get_flags(self) -> Optional[ObjectAceFlags]:
        return self[ACE_BODY].get_flags()

    def get_object_type(self) -> Optional[uuid.UUID]:
        return self[ACE_BODY].get_object_type()

    def get_inherited_object_type(self) -> Optional[uuid.UUID]:
        return self[ACE_BODY].get_inherited_object_type()

    def has_privilege(self, priv: int) -> bool:
        return self[ACE_BODY].has_privilege(priv)


class ACL(Structure):
    """
    ACL as described in 2.4.5
    https://msdn.microsoft.com/en-us/library/cc230297.aspx
    """
    structure = (ACL_REVISION, SBZ1, ACL_SIZE, ACE_COUNT, SBZ2, ACES)
    REPR_NAME = 'ACL'

    def get_revision(self) -> int:
        return self[ACL_REVISION]

    def get_acl_size(self) -> int:
        return self[ACL_SIZE]

    def get_ace_count(self) -> int:
        return self[ACE_COUNT]

    def get_aces(self) -> Tuple[ACE, ...]:
        return self[ACES]

    def get_aces_for_sid(self, sid_string: str) -> List[ACE]:
        """ Get the ACEs that apply to the SID given in canonical string format (e.g. S-1-5-11) """
        return [ace for ace in self[ACES]
                if ace.get_sid() is not None and ace.get_sid().to_canonical_string_format() == sid_string]

    def __iter__(self):
        return iter(self[ACES])


class SecurityDescriptorHeader(Structure):
    """
    The fixed header of a self-relative security descriptor as described in 2.4.6
    https://msdn.microsoft.com/en-us/library/cc230366.aspx
    Offsets are relative to the start of the security descriptor, and an offset of 0 means that
    part of the security descriptor isn't there.
    """
    structure = (REVISION, SBZ1, CONTROL, OFFSET_OWNER, OFFSET_GROUP, OFFSET_SACL, OFFSET_DACL)
    REPR_NAME = 'SecurityDescriptorHeader'

    def get_revision(self) -> int:
        return self[REVISION]

    def get_control(self) -> SecurityDescriptorControl:
        return self[CONTROL]

    def get_offsets(self) -> Dict[str, int]:
        return {name: self[name] for name in (OFFSET_OWNER, OFFSET_GROUP, OFFSET_SACL, OFFSET_DACL)}

    def has_owner(self) -> bool:
        return self[OFFSET_OWNER] != 0

    def has_group(self) -> bool:
        return self[OFFSET_GROUP] != 0

    def has_sacl(self) -> bool:
        return self[OFFSET_SACL] != 0

    def has_dacl(self) -> bool:
        return self[OFFSET_DACL] != 0


class SelfRelativeSecurityDescriptor(Structure):
    """
    Self-relative security descriptor as described in 2.4.6, with every offset in its header
    resolved. Parts that the header says are absent are None.
    https://msdn.microsoft.com/en-us/library/cc230366.aspx
    """
    structure = (HEADER, OWNER_SID, GROUP_SID, SACL, DACL)
    REPR_NAME = 'SelfRelativeSecurityDescriptor'

    def get_header(self) -> SecurityDescriptorHeader:
        return self[HEADER]

    def get_control(self) -> SecurityDescriptorControl:
        return self[HEADER].get_control()

    def get_owner_sid(self) -> Optional[ObjectSid]:
        return self[OWNER_SID]

    def get_group_sid(self) -> Optional[ObjectSid]:
        return self[GROUP_SID]

    def get_sacl(self) -> Optional[ACL]:
        return self[SACL]

    def get_dacl(self) -> Optional[ACL]:
        return self[DACL]
