""" Exceptions used within the library """
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


class MsSecurityDescriptorException(Exception):
    """ A parent class for all other exceptions so that users can have a catch-all exception for
    functional issues that still doesn't blind them to things like accidentally providing a string
    where bytes are needed.
    """
    def __init__(self, exception_str):
        self.message = exception_str
        super().__init__(self.message)


class InvalidSecurityDescriptorParameterException(MsSecurityDescriptorException):
    """ An exception raised when a decoding function is called with parameters that are not of a
    proper type or value, as opposed to being called with malformed data.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class SecurityDescriptorDecodeException(MsSecurityDescriptorException):
    """ An exception raised when errors occur decoding a security descriptor """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class TruncatedInputException(SecurityDescriptorDecodeException):
    """ An exception raised when fewer bytes remain than a field or a sub-structure with a declared
    length requires. The position the read started at, the number of bytes needed, and the number
    of bytes that were actually available are kept so callers can re-request more data.
    """
    def __init__(self, exception_str, position: int = None, needed: int = None, available: int = None):
        self.position = position
        self.needed = needed
        self.available = available
        super().__init__(exception_str)


class InvalidAceSizeException(SecurityDescriptorDecodeException):
    """ An exception raised when an ACE declares a size smaller than its own 4 byte header """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InconsistentLengthException(SecurityDescriptorDecodeException):
    """ An exception raised in strict decoding when declared sizes don't agree with the data, such as
    an ACL whose size doesn't match the sum of its ACE sizes, or an ACE body with bytes left over
    after its SID.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)
