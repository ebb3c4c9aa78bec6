import unittest
import uuid

from ms_security_descriptor.core.security_descriptor_objects import (
    AccessAllowedAce,
    AccessAllowedObjectAce,
    AccessDeniedAce,
    AccessDeniedObjectAce,
    AccessMask,
    AceFlags,
    ObjectAccessAce,
    ObjectAceFlags,
    SimpleAccessAce,
    UnrecognizedAce,
)
from ms_security_descriptor.environment.security.ad_security_guids import (
    ADRightsGuid,
    ADSchemaClassGuid,
)
from ms_security_descriptor.environment.security.security_descriptor_constants import (
    ACE_BODY,
    ACE_FLAGS,
    ACE_SIZE,
    ACE_TYPE,
    DATA,
    SYSTEM_AUDIT_OBJECT_ACE_TYPE,
    SYSTEM_MANDATORY_LABEL_ACE_TYPE,
)
from ms_security_descriptor.environment.security.security_descriptor_utils import (
    decode_ace,
    decode_ace_payload,
)
from ms_security_descriptor.exceptions import (
    InconsistentLengthException,
    InvalidAceSizeException,
    TruncatedInputException,
)

from tests.encoding_helpers import (
    encode_ace,
    encode_object_ace_body,
    encode_sid_string,
    encode_simple_ace_body,
)


SIMPLE_ACE_HEX = '00121800bd010f00010200000000000520000000' + '21020000'
OBJECT_ACE_HEX = ('05002c00' + '10000000' + '02000000' +
                  'ba7a96bfe60dd011a28500aa003049e2' +
                  '01020000000000052000000021020000')


class DecodeSimpleAceTest(unittest.TestCase):
    def test_simple_ace(self):
        ace, consumed = decode_ace(bytes.fromhex(SIMPLE_ACE_HEX))
        self.assertEqual(consumed, 24)
        self.assertEqual(ace[ACE_TYPE], 0x00)
        self.assertEqual(ace[ACE_FLAGS], 0x12)
        self.assertEqual(ace[ACE_SIZE], 24)
        self.assertIsInstance(ace[ACE_BODY], AccessAllowedAce)
        self.assertEqual(ace.get_mask(), 0x000F01BD)
        self.assertEqual(ace.get_sid().get_sub_authority_count(), 2)
        self.assertEqual(str(ace.get_sid()), 'S-1-5-32-545')
        self.assertEqual(ace.get_ace_type_name(), 'ACCESS_ALLOWED_ACE')

    def test_simple_ace_has_no_object_fields(self):
        ace, _ = decode_ace(bytes.fromhex(SIMPLE_ACE_HEX))
        self.assertIsNone(ace.get_flags())
        self.assertIsNone(ace.get_object_type())
        self.assertIsNone(ace.get_inherited_object_type())
        self.assertIsNone(ace.get_body().get_object_type_name())

    def test_ace_flags(self):
        ace, _ = decode_ace(bytes.fromhex(SIMPLE_ACE_HEX))
        self.assertTrue(ace.is_inherited())
        self.assertTrue(ace.has_flag(AceFlags.CONTAINER_INHERIT_ACE))
        self.assertFalse(ace.has_flag(AceFlags.OBJECT_INHERIT_ACE))
        self.assertEqual(ace.get_ace_flags().get_flag_names(), ['CONTAINER_INHERIT_ACE', 'INHERITED_ACE'])

    def test_denied_ace(self):
        body = encode_simple_ace_body(AccessMask.WRITE_DACL, encode_sid_string('S-1-1-0'))
        ace, _ = decode_ace(encode_ace(0x01, 0x00, body))
        self.assertIsInstance(ace.get_body(), AccessDeniedAce)
        self.assertIsInstance(ace.get_body(), SimpleAccessAce)
        self.assertTrue(ace.has_privilege(AccessMask.WRITE_DACL))
        self.assertFalse(ace.has_privilege(AccessMask.WRITE_OWNER))

    def test_decode_from_position_stays_inside_ace(self):
        first = bytes.fromhex(SIMPLE_ACE_HEX)
        second = encode_ace(0x01, 0x00, encode_simple_ace_body(1, encode_sid_string('S-1-5-18')))
        data = first + second
        ace, consumed = decode_ace(data, len(first))
        self.assertEqual(consumed, len(second))
        self.assertEqual(str(ace.get_sid()), 'S-1-5-18')
        self.assertEqual(ace.get_data(), second)


class DecodeObjectAceTest(unittest.TestCase):
    def test_object_ace_inherited_object_type_only(self):
        ace, consumed = decode_ace(bytes.fromhex(OBJECT_ACE_HEX))
        self.assertEqual(consumed, 44)
        self.assertIsInstance(ace.get_body(), AccessAllowedObjectAce)
        self.assertEqual(ace.get_mask(), 0x10)
        self.assertEqual(ace.get_flags(), ObjectAceFlags.ACE_INHERITED_OBJECT_TYPE_PRESENT)
        self.assertIsNone(ace.get_object_type())
        self.assertEqual(ace.get_inherited_object_type(), uuid.UUID(ADSchemaClassGuid.User.value))
        self.assertEqual(ace.get_body().get_inherited_object_type_name(), 'User')
        self.assertEqual(str(ace.get_sid()), 'S-1-5-32-545')

    def test_object_ace_both_guids(self):
        body = encode_object_ace_body(AccessMask.ADS_RIGHT_DS_CONTROL_ACCESS, encode_sid_string('S-1-5-11'),
                                      object_type=ADRightsGuid.User_Force_Change_Password.value,
                                      inherited_object_type=ADSchemaClassGuid.Computer.value)
        ace, consumed = decode_ace(encode_ace(0x05, 0x00, body))
        self.assertEqual(consumed, 4 + 8 + 32 + 12)
        self.assertTrue(ace.get_flags().object_type_present())
        self.assertTrue(ace.get_flags().inherited_object_type_present())
        self.assertEqual(str(ace.get_object_type()), ADRightsGuid.User_Force_Change_Password.value)
        self.assertEqual(str(ace.get_inherited_object_type()), ADSchemaClassGuid.Computer.value)
        self.assertEqual(ace.get_body().get_object_type_name(), 'User_Force_Change_Password')
        self.assertEqual(str(ace.get_sid()), 'S-1-5-11')

    def test_object_ace_no_guids(self):
        body = encode_object_ace_body(0x20, encode_sid_string('S-1-5-10'))
        ace, consumed = decode_ace(encode_ace(0x06, 0x00, body))
        self.assertEqual(consumed, 4 + 8 + 12)
        self.assertIsInstance(ace.get_body(), AccessDeniedObjectAce)
        self.assertIsInstance(ace.get_body(), ObjectAccessAce)
        self.assertIsNone(ace.get_object_type())
        self.assertIsNone(ace.get_inherited_object_type())
        self.assertEqual(str(ace.get_sid()), 'S-1-5-10')

    def test_object_type_only(self):
        body = encode_object_ace_body(0x10, encode_sid_string('S-1-5-10'),
                                      object_type=ADRightsGuid.Validated_SPN.value)
        ace, _ = decode_ace(encode_ace(0x05, 0x00, body))
        self.assertEqual(str(ace.get_object_type()), ADRightsGuid.Validated_SPN.value)
        self.assertIsNone(ace.get_inherited_object_type())
        self.assertEqual(str(ace.get_sid()), 'S-1-5-10')

    def test_unknown_object_flag_bits_are_kept(self):
        body = encode_object_ace_body(0x10, encode_sid_string('S-1-5-10'), extra_flags=0x80000000)
        ace, _ = decode_ace(encode_ace(0x05, 0x00, body))
        self.assertEqual(int(ace.get_flags()), 0x80000000)
        self.assertEqual(ace.get_flags().get_unknown_bits(), 0x80000000)
        self.assertEqual(ace.get_flags().get_flag_names(), [])
        self.assertIsNone(ace.get_object_type())
        self.assertEqual(str(ace.get_sid()), 'S-1-5-10')

    def test_cut_in_guid(self):
        data = bytes.fromhex(OBJECT_ACE_HEX)
        body = data[4:4 + 8 + 10]
        with self.assertRaises(TruncatedInputException):
            decode_ace_payload(0x05, body)

    def test_guid_flag_set_but_body_too_short(self):
        # the flags claim a GUID that the declared ACE size doesn't leave room for
        body = encode_object_ace_body(0x10, b'', object_type=ADRightsGuid.Send_As.value)[:-4]
        with self.assertRaises(TruncatedInputException):
            decode_ace(encode_ace(0x05, 0x00, body))


class DecodeUnrecognizedAceTest(unittest.TestCase):
    def test_unknown_type_is_passed_through(self):
        body = b'\x01\x02\x03\x04\x05\x06\x07\x08'
        ace, consumed = decode_ace(encode_ace(0x42, 0x03, body))
        self.assertEqual(consumed, 12)
        self.assertIsInstance(ace.get_body(), UnrecognizedAce)
        self.assertEqual(ace.get_body()[DATA], body)
        self.assertEqual(ace.get_body().get_raw_body(), body)
        self.assertFalse(ace.is_recognized())
        self.assertEqual(ace.get_ace_type_name(), 'UNKNOWN_ACE')

    def test_unrecognized_ace_has_no_mask_or_sid(self):
        ace, _ = decode_ace(encode_ace(0x42, 0x00, b'\xaa\xbb\xcc\xdd'))
        self.assertIsNone(ace.get_mask())
        self.assertIsNone(ace.get_sid())
        self.assertIsNone(ace.get_flags())
        self.assertIsNone(ace.get_object_type())
        self.assertIsNone(ace.get_inherited_object_type())
        self.assertFalse(ace.has_privilege(0x1))

    def test_known_but_undecoded_types_keep_their_name(self):
        body = encode_object_ace_body(0x10, encode_sid_string('S-1-1-0'))
        ace, _ = decode_ace(encode_ace(SYSTEM_AUDIT_OBJECT_ACE_TYPE, 0x40, body))
        self.assertIsInstance(ace.get_body(), UnrecognizedAce)
        self.assertEqual(ace.get_body().get_raw_body(), body)
        self.assertEqual(ace.get_ace_type_name(), 'SYSTEM_AUDIT_OBJECT_ACE')

        ace, _ = decode_ace(encode_ace(SYSTEM_MANDATORY_LABEL_ACE_TYPE, 0x00,
                                       encode_simple_ace_body(1, encode_sid_string('S-1-16-12288'))))
        self.assertEqual(ace.get_ace_type_name(), 'SYSTEM_MANDATORY_LABEL_ACE')

    def test_empty_body(self):
        ace, consumed = decode_ace(encode_ace(0x42, 0x00, b''))
        self.assertEqual(consumed, 4)
        self.assertEqual(ace.get_body().get_raw_body(), b'')


class DecodeAceSizeTest(unittest.TestCase):
    def test_size_smaller_than_header(self):
        for size in range(4):
            with self.assertRaises(InvalidAceSizeException):
                decode_ace(encode_ace(0x00, 0x00, b'', ace_size=size))

    def test_cut_in_header(self):
        with self.assertRaises(TruncatedInputException):
            decode_ace(bytes.fromhex(SIMPLE_ACE_HEX)[:3])

    def test_size_larger_than_data(self):
        data = bytes.fromhex(SIMPLE_ACE_HEX)
        with self.assertRaises(TruncatedInputException):
            decode_ace(data[:-1])

    def test_size_cuts_sid_short(self):
        # the ACE says it ends before its SID does, so the SID can't borrow bytes from what follows
        body = encode_simple_ace_body(1, encode_sid_string('S-1-5-32-545'))
        following = encode_ace(0x00, 0x00, body)
        data = encode_ace(0x00, 0x00, body, ace_size=len(body)) + following
        with self.assertRaises(TruncatedInputException):
            decode_ace(data)

    def test_padding_after_sid_is_tolerated(self):
        body = encode_simple_ace_body(1, encode_sid_string('S-1-5-18')) + b'\x00' * 4
        ace, consumed = decode_ace(encode_ace(0x00, 0x00, body))
        self.assertEqual(consumed, len(body) + 4)
        self.assertEqual(str(ace.get_sid()), 'S-1-5-18')
        self.assertEqual(ace.get_sid().get_data(), encode_sid_string('S-1-5-18'))

    def test_padding_after_sid_fails_strictly(self):
        body = encode_simple_ace_body(1, encode_sid_string('S-1-5-18')) + b'\x00' * 4
        with self.assertRaises(InconsistentLengthException):
            decode_ace(encode_ace(0x00, 0x00, body), strict=True)
