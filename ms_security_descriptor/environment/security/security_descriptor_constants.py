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

from enum import Enum

# Constants related to Security Descriptor parsing
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/7d4dac05-9cef-4563-a058-f108abecce1d

# Field sizes, in bytes
SECURITY_DESCRIPTOR_HEADER_SIZE_BYTES = 20
ACL_HEADER_SIZE_BYTES = 8
ACE_HEADER_SIZE_BYTES = 4
ACCESS_MASK_SIZE_BYTES = 4
OBJECT_ACE_FLAGS_SIZE_BYTES = 4
GUID_SIZE_BYTES = 16
SID_HEADER_SIZE_BYTES = 8
SID_IDENTIFIER_AUTHORITY_SIZE_BYTES = 6
SID_SUB_AUTHORITY_SIZE_BYTES = 4

# struct formats for the fixed size headers. everything is little-endian except for the SID
# identifier authority, which is a 48 bit big-endian value and so is decoded separately
SECURITY_DESCRIPTOR_HEADER_FMT = '<BBHLLLL'
ACL_HEADER_FMT = '<BBHHH'
ACE_HEADER_FMT = '<BBH'
SID_PREFIX_FMT = '<BB'
UINT32_FMT = '<L'

# identifier authorities that don't fit in 32 bits are printed in hex in canonical SID strings
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/c92a27b1-c772-4fa7-a432-15df5f1b66a1
MAX_DECIMAL_IDENTIFIER_AUTHORITY = 2 ** 32

# Sacl and Dacl
SACL = 'Sacl'
DACL = 'Dacl'
HEADER = 'Header'

# Offset constants
OFFSET_OWNER = 'OffsetOwner'
OFFSET_GROUP = 'OffsetGroup'
OFFSET_SACL = 'OffsetSacl'
OFFSET_DACL = 'OffsetDacl'

# SID constants
OWNER_SID = 'OwnerSid'
GROUP_SID = 'GroupSid'
SID = 'Sid'

# ACL constants
ACES = 'Aces'
ACE_COUNT = 'AceCount'
ACL_REVISION = 'AclRevision'
ACL_SIZE = 'AclSize'

# ACE constants
ACE_BODY = 'Ace'
ACE_FLAGS = 'AceFlags'
ACE_SIZE = 'AceSize'
ACE_TYPE = 'AceType'

# Object authority constants
IDENTIFIER_AUTHORITY = 'IdentifierAuthority'
SUB_AUTHORITY = 'SubAuthority'
SUB_AUTHORITY_COUNT = 'SubAuthorityCount'

# Object type constants
INHERITED_OBJECT_TYPE = 'InheritedObjectType'
OBJECT_TYPE = 'ObjectType'

# General constants used a bit across AD
CONTROL = 'Control'
DATA = 'Data'
FLAGS = 'Flags'
MASK = 'Mask'
REVISION = 'Revision'
SBZ1 = 'Sbz1'
SBZ2 = 'Sbz2'

# ACE types
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/628ebb1d-c509-4ea0-a10f-77ef97ca4586
ACCESS_ALLOWED_ACE_TYPE = 0x00
ACCESS_DENIED_ACE_TYPE = 0x01
SYSTEM_AUDIT_ACE_TYPE = 0x02
SYSTEM_ALARM_ACE_TYPE = 0x03
ACCESS_ALLOWED_COMPOUND_ACE_TYPE = 0x04
ACCESS_ALLOWED_OBJECT_ACE_TYPE = 0x05
ACCESS_DENIED_OBJECT_ACE_TYPE = 0x06
SYSTEM_AUDIT_OBJECT_ACE_TYPE = 0x07
SYSTEM_ALARM_OBJECT_ACE_TYPE = 0x08
ACCESS_ALLOWED_CALLBACK_ACE_TYPE = 0x09
ACCESS_DENIED_CALLBACK_ACE_TYPE = 0x0A
ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE = 0x0B
ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE = 0x0C
SYSTEM_AUDIT_CALLBACK_ACE_TYPE = 0x0D
SYSTEM_ALARM_CALLBACK_ACE_TYPE = 0x0E
SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE = 0x0F
SYSTEM_ALARM_CALLBACK_OBJECT_ACE_TYPE = 0x10
SYSTEM_MANDATORY_LABEL_ACE_TYPE = 0x11
SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE = 0x12
SYSTEM_SCOPED_POLICY_ID_ACE_TYPE = 0x13

# we only decode the bodies of 4 of these, but every type gets a name so that logs and callers
# can say what got passed through
ACE_TYPE_VALUE_TO_NAME_MAP = {
    ACCESS_ALLOWED_ACE_TYPE: 'ACCESS_ALLOWED_ACE',
    ACCESS_DENIED_ACE_TYPE: 'ACCESS_DENIED_ACE',
    SYSTEM_AUDIT_ACE_TYPE: 'SYSTEM_AUDIT_ACE',
    SYSTEM_ALARM_ACE_TYPE: 'SYSTEM_ALARM_ACE',
    ACCESS_ALLOWED_COMPOUND_ACE_TYPE: 'ACCESS_ALLOWED_COMPOUND_ACE',
    ACCESS_ALLOWED_OBJECT_ACE_TYPE: 'ACCESS_ALLOWED_OBJECT_ACE',
    ACCESS_DENIED_OBJECT_ACE_TYPE: 'ACCESS_DENIED_OBJECT_ACE',
    SYSTEM_AUDIT_OBJECT_ACE_TYPE: 'SYSTEM_AUDIT_OBJECT_ACE',
    SYSTEM_ALARM_OBJECT_ACE_TYPE: 'SYSTEM_ALARM_OBJECT_ACE',
    ACCESS_ALLOWED_CALLBACK_ACE_TYPE: 'ACCESS_ALLOWED_CALLBACK_ACE',
    ACCESS_DENIED_CALLBACK_ACE_TYPE: 'ACCESS_DENIED_CALLBACK_ACE',
    ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE: 'ACCESS_ALLOWED_CALLBACK_OBJECT_ACE',
    ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE: 'ACCESS_DENIED_CALLBACK_OBJECT_ACE',
    SYSTEM_AUDIT_CALLBACK_ACE_TYPE: 'SYSTEM_AUDIT_CALLBACK_ACE',
    SYSTEM_ALARM_CALLBACK_ACE_TYPE: 'SYSTEM_ALARM_CALLBACK_ACE',
    SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE: 'SYSTEM_AUDIT_CALLBACK_OBJECT_ACE',
    SYSTEM_ALARM_CALLBACK_OBJECT_ACE_TYPE: 'SYSTEM_ALARM_CALLBACK_OBJECT_ACE',
    SYSTEM_MANDATORY_LABEL_ACE_TYPE: 'SYSTEM_MANDATORY_LABEL_ACE',
    SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE: 'SYSTEM_RESOURCE_ATTRIBUTE_ACE',
    SYSTEM_SCOPED_POLICY_ID_ACE_TYPE: 'SYSTEM_SCOPED_POLICY_ID_ACE',
}
UNKNOWN_ACE_TYPE_NAME = 'UNKNOWN_ACE'

# ACE header flags, mostly about inheritance and auditing
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/628ebb1d-c509-4ea0-a10f-77ef97ca4586
ACE_FLAG_VALUE_TO_NAME_MAP = {
    0x01: 'OBJECT_INHERIT_ACE',
    0x02: 'CONTAINER_INHERIT_ACE',
    0x04: 'NO_PROPAGATE_INHERIT_ACE',
    0x08: 'INHERIT_ONLY_ACE',
    0x10: 'INHERITED_ACE',
    0x40: 'SUCCESSFUL_ACCESS_ACE_FLAG',
    0x80: 'FAILED_ACCESS_ACE_FLAG',
}

# Object ACE flags, which say which of the optional GUIDs are in the body
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/c79a383c-2b3f-4655-abe7-dcbb7ce0cfbe
OBJECT_ACE_FLAG_VALUE_TO_NAME_MAP = {
    0x01: 'ACE_OBJECT_TYPE_PRESENT',
    0x02: 'ACE_INHERITED_OBJECT_TYPE_PRESENT',
}

# Security descriptor control bits
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/7d4dac05-9cef-4563-a058-f108abecce1d
SECURITY_DESCRIPTOR_CONTROL_VALUE_TO_NAME_MAP = {
    0x0001: 'SE_OWNER_DEFAULTED',
    0x0002: 'SE_GROUP_DEFAULTED',
    0x0004: 'SE_DACL_PRESENT',
    0x0008: 'SE_DACL_DEFAULTED',
    0x0010: 'SE_SACL_PRESENT',
    0x0020: 'SE_SACL_DEFAULTED',
    0x0040: 'SE_DACL_TRUSTED',
    0x0080: 'SE_SERVER_SECURITY',
    0x0100: 'SE_DACL_AUTO_INHERIT_REQ',
    0x0200: 'SE_SACL_AUTO_INHERIT_REQ',
    0x0400: 'SE_DACL_AUTO_INHERITED',
    0x0800: 'SE_SACL_AUTO_INHERITED',
    0x1000: 'SE_DACL_PROTECTED',
    0x2000: 'SE_SACL_PROTECTED',
    0x4000: 'SE_RM_CONTROL_VALID',
    0x8000: 'SE_SELF_RELATIVE',
}


# AD has some "well known SIDs" that people may want to use.
# These are independent of the actual domain
# see: https://docs.microsoft.com/en-us/windows/win32/secauthz/well-known-sids
# also see: https://docs.microsoft.com/en-us/windows/security/identity-protection/access-control/security-identifiers


class WellKnownSID(Enum):
    NULL = 'S-1-0-0'
    EVERYONE = 'S-1-1-0'
    CREATOR_OWNER = 'S-1-3-0'
    CREATOR_GROUP = 'S-1-3-1'

    # the following all exist within the windows NT authority (S-1-5)
    SERVICE = 'S-1-5-6'
    ANONYMOUS = 'S-1-5-7'
    ENTERPRISE_CONTROLLERS = 'S-1-5-9'
    SELF = 'S-1-5-10'
    AUTHENTICATED_USERS = 'S-1-5-11'
    LOCAL_OS = 'S-1-5-18'

    # default domain groups
    ADMINISTRATORS_BUILT_IN_GROUP = 'S-1-5-32-544'
    USERS_BUILT_IN_GROUP = 'S-1-5-32-545'
    GUESTS_BUILT_IN_GROUP = 'S-1-5-32-546'
    POWER_USERS_BUILT_IN_GROUP = 'S-1-5-32-547'
    ACCOUNT_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-548'
    SERVER_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-549'
    PRINT_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-550'
    BACKUP_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-551'
    REPLICATORS_BUILT_IN_GROUP = 'S-1-5-32-552'
    PRE_WINDOWS_2000_COMPATIBLE_ACCESS_BUILT_IN_GROUP = 'S-1-5-32-554'
    REMOTE_DESKTOP_USERS_BUILT_IN_GROUP = 'S-1-5-32-555'
    NETWORK_CONFIG_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-556'
    WINDOWS_AUTHORIZATION_ACCESS_BUILT_IN_GROUP = 'S-1-5-32-560'
    REMOTE_MANAGEMENT_USERS_BUILT_IN_GROUP = 'S-1-5-32-580'
    ALL_SERVICES_BUILT_IN_GROUP = 'S-1-5-80-0'


WELL_KNOWN_SID_STR_TO_ENUM = {sid.value: sid for sid in WellKnownSID}
