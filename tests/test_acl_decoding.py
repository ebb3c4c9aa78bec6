import unittest

from ms_security_descriptor.core.security_descriptor_objects import (
    AccessAllowedAce,
    AccessMask,
    UnrecognizedAce,
)
from ms_security_descriptor.environment.security.ad_security_guids import (
    ADPropertySetGuid,
    ADRightsGuid,
    ADSchemaClassGuid,
)
from ms_security_descriptor.environment.security.security_descriptor_constants import (
    ACE_COUNT,
    ACES,
    ACL_REVISION,
    ACL_SIZE,
)
from ms_security_descriptor.environment.security.security_descriptor_utils import decode_acl
from ms_security_descriptor.exceptions import (
    InconsistentLengthException,
    InvalidAceSizeException,
    TruncatedInputException,
)

from tests.encoding_helpers import (
    encode_ace,
    encode_acl,
    encode_object_ace_body,
    encode_sid_string,
    encode_simple_ace_body,
)


DOMAIN_SID = 'S-1-5-21-3623811015-3361044348-30300820'


def _build_large_domain_acl():
    """ Build a DACL shaped like the ones on AD user objects: 52 ACEs in 2820 bytes """
    aces = []
    for rid in range(1100, 1122):
        # 72 bytes each
        body = encode_object_ace_body(AccessMask.ADS_RIGHT_DS_READ_PROP, encode_sid_string('{}-{}'.format(DOMAIN_SID,
                                                                                                          rid)),
                                      object_type=ADPropertySetGuid.Personal_Information.value,
                                      inherited_object_type=ADSchemaClassGuid.User.value)
        aces.append(encode_ace(0x05, 0x12, body))
    for _ in range(7):
        # 44 bytes each
        body = encode_object_ace_body(AccessMask.GENERIC_ALL, encode_sid_string('S-1-5-32-548'),
                                      inherited_object_type=ADSchemaClassGuid.Group.value)
        aces.append(encode_ace(0x05, 0x1a, body))
    for _ in range(23):
        # 40 bytes each
        body = encode_object_ace_body(AccessMask.ADS_RIGHT_DS_CONTROL_ACCESS, encode_sid_string('S-1-5-11'),
                                      object_type=ADRightsGuid.Change_Password.value)
        aces.append(encode_ace(0x05, 0x00, body))
    return encode_acl(aces)


def _simple_ace(sid_string, mask=AccessMask.READ_CONTROL, ace_type=0x00):
    return encode_ace(ace_type, 0x00, encode_simple_ace_body(mask, encode_sid_string(sid_string)))


class DecodeAclTest(unittest.TestCase):
    def test_large_domain_acl(self):
        data = _build_large_domain_acl()
        self.assertEqual(len(data), 2820)
        acl, consumed = decode_acl(data)
        self.assertEqual(acl[ACL_REVISION], 4)
        self.assertEqual(acl[ACL_SIZE], 2820)
        self.assertEqual(acl[ACE_COUNT], 52)
        self.assertEqual(len(acl[ACES]), 52)
        self.assertEqual(consumed, 2820)
        self.assertEqual(sum(ace.get_ace_size() for ace in acl), 2820 - 8)

    def test_large_domain_acl_decodes_strictly(self):
        acl, consumed = decode_acl(_build_large_domain_acl(), strict=True)
        self.assertEqual(consumed, 2820)
        self.assertEqual(len(acl.get_aces()), acl.get_ace_count())

    def test_aces_are_in_order(self):
        data = encode_acl([_simple_ace('S-1-5-18'), _simple_ace('S-1-5-11', ace_type=0x01), _simple_ace('S-1-1-0')])
        acl, _ = decode_acl(data)
        self.assertEqual([str(ace.get_sid()) for ace in acl], ['S-1-5-18', 'S-1-5-11', 'S-1-1-0'])
        self.assertEqual([ace.get_ace_type_name() for ace in acl],
                         ['ACCESS_ALLOWED_ACE', 'ACCESS_DENIED_ACE', 'ACCESS_ALLOWED_ACE'])

    def test_empty_acl(self):
        acl, consumed = decode_acl(encode_acl([]))
        self.assertEqual(consumed, 8)
        self.assertEqual(acl.get_aces(), ())
        self.assertEqual(acl.get_revision(), 4)

    def test_decode_from_position(self):
        acl_data = encode_acl([_simple_ace('S-1-5-18')], revision=2)
        data = b'\x00' * 20 + acl_data + b'\xff' * 8
        acl, consumed = decode_acl(data, 20)
        self.assertEqual(consumed, len(acl_data))
        self.assertEqual(acl.get_revision(), 2)
        self.assertEqual(acl.get_data(), acl_data)

    def test_aces_for_sid(self):
        data = encode_acl([_simple_ace('S-1-5-18'), _simple_ace('S-1-5-11', mask=AccessMask.WRITE_DACL),
                           encode_ace(0x42, 0x00, b'\x00' * 8), _simple_ace('S-1-5-11')])
        acl, _ = decode_acl(data)
        aces = acl.get_aces_for_sid('S-1-5-11')
        self.assertEqual(len(aces), 2)
        self.assertEqual(aces[0].get_mask(), AccessMask.WRITE_DACL)
        self.assertEqual(acl.get_aces_for_sid('S-1-1-0'), [])

    def test_unrecognized_ace_does_not_stop_the_acl(self):
        exotic = encode_ace(0x11, 0x00, b'\x01\x00\x00\x00' + encode_sid_string('S-1-16-8192'))
        data = encode_acl([_simple_ace('S-1-5-18'), exotic, _simple_ace('S-1-5-32-544')])
        acl, consumed = decode_acl(data)
        self.assertEqual(consumed, len(data))
        bodies = [ace.get_body() for ace in acl]
        self.assertIsInstance(bodies[0], AccessAllowedAce)
        self.assertIsInstance(bodies[1], UnrecognizedAce)
        self.assertEqual(bodies[1].get_raw_body(), exotic[4:])
        self.assertEqual(str(bodies[2].get_sid()), 'S-1-5-32-544')

    def test_acls_with_equal_contents_are_equal(self):
        data = encode_acl([_simple_ace('S-1-5-18')])
        first, _ = decode_acl(data)
        second, _ = decode_acl(b'\x00\x00\x00\x00' + data, 4)
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))


class DecodeAclLengthTest(unittest.TestCase):
    def test_size_mismatch_is_tolerated(self):
        aces = [_simple_ace('S-1-5-18')]
        data = encode_acl(aces, acl_size=1024)
        acl, consumed = decode_acl(data)
        self.assertEqual(acl.get_acl_size(), 1024)
        self.assertEqual(consumed, 8 + len(aces[0]))

    def test_size_mismatch_fails_strictly(self):
        for acl_size in (8, 1024):
            data = encode_acl([_simple_ace('S-1-5-18')], acl_size=acl_size)
            with self.assertRaises(InconsistentLengthException):
                decode_acl(data, strict=True)

    def test_strict_is_passed_to_aces(self):
        padded = encode_ace(0x00, 0x00, encode_simple_ace_body(1, encode_sid_string('S-1-5-18')) + b'\x00' * 4)
        data = encode_acl([padded])
        acl, _ = decode_acl(data)
        self.assertEqual(str(acl.get_aces()[0].get_sid()), 'S-1-5-18')
        with self.assertRaises(InconsistentLengthException):
            decode_acl(data, strict=True)


class DecodeAclFailureTest(unittest.TestCase):
    def test_cut_in_header(self):
        with self.assertRaises(TruncatedInputException):
            decode_acl(encode_acl([])[:7])

    def test_fewer_aces_than_count(self):
        data = encode_acl([_simple_ace('S-1-5-18'), _simple_ace('S-1-5-11')], ace_count=3)
        with self.assertRaises(TruncatedInputException):
            decode_acl(data)

    def test_cut_in_ace_header(self):
        data = encode_acl([_simple_ace('S-1-5-18'), _simple_ace('S-1-5-11')])
        with self.assertRaises(TruncatedInputException):
            decode_acl(data[:8 + 20 + 2])

    def test_cut_in_sid(self):
        data = encode_acl([_simple_ace('S-1-5-18')])
        with self.assertRaises(TruncatedInputException):
            decode_acl(data[:-3])

    def test_bad_ace_size_fails_the_acl(self):
        data = encode_acl([_simple_ace('S-1-5-18'), encode_ace(0x00, 0x00, b'', ace_size=2)])
        with self.assertRaises(InvalidAceSizeException):
            decode_acl(data)
