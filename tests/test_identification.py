import unittest

import pytest

from sripos.fiscal.exceptions import InvalidIdentificationError
from sripos.fiscal.identification import (
    FINAL_CONSUMER_ID,
    IdentificationValidator,
    IdKind,
    buyer_identification_code,
    check_modulo_10,
    check_modulo_11,
    classify,
)
from sripos.utils import digits_of


class TestCedula(unittest.TestCase):
    def test_valid_cedulas(self):
        for cedula in ['1710034065', '0102030400', '3012345678']:
            self.assertEqual(classify(cedula), (True, IdKind.NATURAL_CITIZEN), cedula)

    def test_wrong_check_digit(self):
        self.assertEqual(classify('1710034064'), (False, IdKind.UNKNOWN))
        self.assertEqual(classify('1710034066'), (False, IdKind.UNKNOWN))

    def test_province(self):
        # 25-29 and 00 are not provinces, 30 is for Ecuadorians registered abroad
        self.assertFalse(classify('2512345678').is_valid)
        self.assertFalse(classify('0012345678').is_valid)
        self.assertTrue(classify('3012345678').is_valid)

    def test_algorithm_correctness(self):
        # 1*2 + 7*1 + 1*2 + 0 + 0 + 3*1 + 4*2 + 0 + (6*2 - 9) = 25, 10 - 5 = 5
        self.assertTrue(check_modulo_10(digits_of('1710034065')))
        # sum is 10, a multiple of 10, so the check digit is 0
        self.assertTrue(check_modulo_10(digits_of('0102030400')))


class TestRUC(unittest.TestCase):
    def test_natural_person(self):
        self.assertEqual(classify('1710034065001'), (True, IdKind.TAXPAYER_NATURAL))
        # establishment 000 does not exist
        self.assertEqual(classify('1710034065000'), (False, IdKind.UNKNOWN))
        self.assertEqual(classify('1710034064001'), (False, IdKind.UNKNOWN))

    def test_private_entity(self):
        self.assertEqual(classify('1790011674001'), (True, IdKind.TAXPAYER_PRIVATE_ENTITY))
        # remainder 0 means check digit 0
        self.assertEqual(classify('1790000060001'), (True, IdKind.TAXPAYER_PRIVATE_ENTITY))
        self.assertFalse(classify('1790011675001').is_valid)
        self.assertFalse(classify('1790011674000').is_valid)

    def test_private_entity_result_10_is_invalid(self):
        # 4 + 21 + 18 + 1*2 = 45, 11 - 45 % 11 = 10
        self.assertFalse(check_modulo_11(digits_of('1790000010001'), [4, 3, 2, 7, 6, 5, 4, 3, 2], 9))
        self.assertEqual(classify('1790000010001'), (False, IdKind.UNKNOWN))

    def test_public_entity(self):
        self.assertEqual(classify('1760001550001'), (True, IdKind.TAXPAYER_PUBLIC_ENTITY))
        self.assertFalse(classify('1760001550000').is_valid)
        self.assertFalse(classify('1760000400001').is_valid)

    def test_entities_need_13_digits(self):
        self.assertEqual(classify('1760001550'), (False, IdKind.UNKNOWN))
        self.assertEqual(classify('1790011674'), (False, IdKind.UNKNOWN))

    def test_third_digit_without_regime(self):
        self.assertEqual(classify('1770000000001'), (False, IdKind.UNKNOWN))
        self.assertEqual(classify('1780000000001'), (False, IdKind.UNKNOWN))

    def test_is_ruc(self):
        validator = IdentificationValidator()
        self.assertTrue(validator.is_ruc('1790011674001'))
        self.assertTrue(validator.is_ruc('1760001550001'))
        self.assertTrue(validator.is_ruc('1710034065001'))
        self.assertFalse(validator.is_ruc('1710034065'))
        self.assertFalse(validator.is_ruc(FINAL_CONSUMER_ID))
        self.assertFalse(validator.is_ruc('A1234567'))


class TestOtherIdentifications(unittest.TestCase):
    def test_final_consumer(self):
        self.assertEqual(classify('9999999999999'), (True, IdKind.FINAL_CONSUMER))

    def test_passports(self):
        for value in ['A12345', 'ABCDE', 'P-9876543', '123456', '12345678', '1234567890123456789']:
            self.assertEqual(classify(value), (True, IdKind.FOREIGN_PASSPORT), value)

    def test_unknown(self):
        for value in ['AB12', '12345', '12345678901234567890', '', None, 1710034065]:
            self.assertEqual(classify(value), (False, IdKind.UNKNOWN), value)

    def test_does_not_strip(self):
        self.assertEqual(classify(' 1710034065'), (True, IdKind.FOREIGN_PASSPORT))


@pytest.mark.parametrize(
    'kind, code',
    [
        (IdKind.TAXPAYER_NATURAL, '04'),
        (IdKind.TAXPAYER_PRIVATE_ENTITY, '04'),
        (IdKind.TAXPAYER_PUBLIC_ENTITY, '04'),
        (IdKind.NATURAL_CITIZEN, '05'),
        (IdKind.FOREIGN_PASSPORT, '06'),
        (IdKind.FINAL_CONSUMER, '07'),
    ],
)
def test_buyer_identification_code(kind, code):
    assert buyer_identification_code(kind) == code


def test_buyer_identification_code_unknown():
    with pytest.raises(InvalidIdentificationError):
        buyer_identification_code(IdKind.UNKNOWN)
