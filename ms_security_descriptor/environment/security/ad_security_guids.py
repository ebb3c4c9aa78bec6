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

import uuid

from enum import Enum
from typing import Optional, Union


class ADRightsGuid(Enum):
    """ Extended rights that show up as the object type of object ACEs granting control access.
    see: https://docs.microsoft.com/en-us/windows/win32/adschema/extended-rights
    """
    Allowed_To_Authenticate = '68b1d179-0d15-4d4f-ab71-46152e79a7bc'
    Apply_Group_Policy = 'edacfd8f-ffb3-11d1-b41d-00a0c968f939'
    Certificate_Enrollment = '0e10c968-78fb-11d2-90d4-00c04f79dc55'
    Certificate_AutoEnrollment = 'a05b8cc2-17bc-4802-a710-e7c15ab866a2'
    Change_Password = 'ab721a53-1e2f-11d0-9819-00aa0040529b'
    Create_Inbound_Forest_Trust = 'e2a36dc9-ae17-47c3-b58b-be34c55ba633'
    DS_Replication_Get_Changes = '1131f6aa-9c07-11d1-f79f-00c04fc2dcd2'
    DS_Replication_Get_Changes_All = '1131f6ad-9c07-11d1-f79f-00c04fc2dcd2'
    DS_Replication_Get_Changes_In_Filtered_Set = '89e95b76-444d-4c62-991a-0facbeda640c'
    DS_Replication_Manage_Topology = '1131f6ac-9c07-11d1-f79f-00c04fc2dcd2'
    DS_Replication_Synchronize = '1131f6ab-9c07-11d1-f79f-00c04fc2dcd2'
    DS_Validated_Write_Computer = '9b026da6-0d3c-465c-8bee-5199d7165cba'
    Migrate_SID_History = 'ba33815a-4f93-4c76-87f3-57574bff8109'
    Reanimate_Tombstones = '45ec5156-db7e-47bb-b53f-dbeb2d03c40f'
    Receive_As = 'ab721a56-1e2f-11d0-9819-00aa0040529b'
    Send_As = 'ab721a54-1e2f-11d0-9819-00aa0040529b'
    Unexpire_Password = 'ccc2dc7d-a6ad-4a7a-8846-c04e3cc53501'
    User_Force_Change_Password = '00299570-246d-11d0-a768-00aa006e0529'
    Validated_DNS_Host_Name = '72e39547-7b18-11d1-adef-00c04fd8d5cd'
    Validated_SPN = 'f3a64788-5306-11d1-a9c5-0000f80367c1'
    Self_Membership = 'bf9679c0-0de6-11d0-a285-00aa003049e2'


class ADPropertySetGuid(Enum):
    """ Property sets, and a few single properties, that object ACEs commonly grant read or write
    access to.
    see: https://docs.microsoft.com/en-us/windows/win32/adschema/property-sets
    """
    Domain_Password_And_Lockout_Policies = 'c7407360-20bf-11d0-a768-00aa006e0529'
    General_Information = '59ba2f42-79a2-11d0-9020-00c04fc2d3cf'
    Group_Membership = 'bc0ac240-79a9-11d0-9020-00c04fc2d4cf'
    Personal_Information = '77b5b886-944a-11d1-aebd-0000f80367c1'
    Public_Information = 'e48d0154-bcf8-11d1-8702-00c04fb96050'
    Remote_Access_Information = '037088f8-0ae1-11d2-b422-00a0c968f939'
    User_Account_Restrictions = '4c164200-20c0-11d0-a768-00aa006e0529'
    User_Logon = '5f202010-79a5-11d0-9020-00c04fc2d4cf'
    Web_Information = 'e45795b3-9455-11d1-aebd-0000f80367c1'
    Key_Credential_Link = '5b47d60f-6090-40b2-9f37-2a4de88f3063'
    Allowed_To_Act_On_Behalf_Of_Other_Identity = '3f78c3e5-f79a-46bd-a0b8-9d18116ddc79'


class ADSchemaClassGuid(Enum):
    """ Schema class GUIDs. These usually appear as the inherited object type of an ACE, which
    limits what kind of child object the ACE is inherited by.
    """
    Computer = 'bf967a86-0de6-11d0-a285-00aa003049e2'
    Group = 'bf967a9c-0de6-11d0-a285-00aa003049e2'
    Organizational_Unit = 'bf967aa5-0de6-11d0-a285-00aa003049e2'
    User = 'bf967aba-0de6-11d0-a285-00aa003049e2'
    Inet_Org_Person = '4828cc14-1437-45bc-9b07-ad6f015e5f28'
    Group_Managed_Service_Account = '7b8b558a-93a5-4af7-adca-c017e67f1057'


# lookups are by the lowercase string format of the guid, which is what uuid.UUID produces
AD_GUID_STR_TO_ENUM = {}
for _guid_enum in (ADSchemaClassGuid, ADPropertySetGuid, ADRightsGuid):
    AD_GUID_STR_TO_ENUM.update({member.value: member for member in _guid_enum})


def get_ad_guid_enum_for_guid(guid: Union[uuid.UUID, str, None]) -> Optional[Enum]:
    """ Given a guid from an object ACE, either as a UUID or a string, find the well-known
    extended right, property set, or schema class that it refers to.
    Returns None if the guid is None or isn't one we have a name for.
    """
    if guid is None:
        return None
    return AD_GUID_STR_TO_ENUM.get(str(guid).lower())
