"""Magnetic declination from the World Magnetic Model.

Implements WMM2025 (degree and order 12 spherical harmonics with secular
variation), valid from 2025.0 to 2030.0. Declination is positive east:
magnetic = true - declination.

The coefficient tables below are the Schmidt semi-normalized WMM2025
coefficients already converted to unnormalized form, stored row by row for
m = 0..12 (row m holds n = m..12, row 0 starting at n = 0).

Typical usage:
    from navplan.navigation.magnetic import WorldMagneticModel

    model = WorldMagneticModel()
    variation = model.declination(37.6191, -122.3756)  # about 13° E
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import date

import numpy as np

logger = logging.getLogger(__name__)

NMAX = 12
WMM_EPOCH = 2025.0
WMM_VALID_START = 2025.0
WMM_VALID_END = 2030.0
# Geomagnetic reference radius in meters
EARTH_R = 6371200.0

WGS84_A = 6378137.0
WGS84_E2 = 0.0066943799901413165

MAIN_FIELD_C = np.array([
    0.0, -29351.8, -2556.6, 1361.0, 895.0, -233.2, 64.4, 79.5, 23.2, 4.6, -1.3, 2.9, -2.0,
    -1410.8, 1703.8183794055044, -981.469715104173, 252.82409893046193, 95.24957042772772, 13.922301397056312, -14.551632210855248, 1.8, 1.1627553482998907, -0.8629758239529499, -0.1846372364689991, -0.022645540682891915,
    476.11189948722483, 160.57388953375948, 4.15163287822461, 9.13442468279827, 2.6533020756713523, -0.2263115799444015, -0.34860834438919813, 0.04767312946227961, 0.00259499648053841, -0.026989594817970655, 0.0027372445072567945,
    23.90681911087295, -5.599646034731634, -1.3814850676223365, -0.6653382101325865, 0.2156720148499058, 0.0049040823861374976, -0.0003467709910735329, 0.002544603402301914, 0.0023082472415244704, 0.0008939803125353484,
    0.08521972068512543, -0.3333664004762482, -0.04294096373910387, 0.008663030650303626, -0.00686929030326151, -0.0004908010366251525, -0.00012852188008557455, -5.267829510341783e-05, -8.070655599277452e-05,
    0.015515999877693526, 0.0033352117122161574, 0.00022845544963880868, 0.0007418859893731344, -0.0003073885868038485, -8.128437404749033e-06, -8.296051686578281e-07, 3.1940908071889606e-06,
    -0.003922249414665777, -0.0001989288712648212, 0.00010160546755936292, 7.270295435148324e-06, -1.3631803940903108e-06, -4.928589116323788e-07, 2.845522253034599e-07,
    6.801413297728968e-05, -2.0776599777965716e-05, 3.760266711303181e-06, 2.755165074316402e-07, -8.658648477055405e-09, 2.2208964739434834e-08,
    2.7825803274061227e-07, -6.523790302905397e-07, 2.2495828630708266e-08, 1.0925366070799884e-08, -4.441792947886967e-10,
    -2.2799965928230828e-07, -1.0947915869962772e-08, -1.2822351770735609e-09, -1.9385573719060062e-10,
    -3.536041036260129e-09, -3.957063665233731e-11, -1.193099586284436e-11,
    1.0967434505203656e-10, -1.143434089780942e-11,
    -1.2567827257223882e-12,
])

MAIN_FIELD_S = np.array([
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    4545.4, -1809.184803532611, -23.106853240254647, 88.10105561229106, 11.722229594521114, -4.015209180342259, -9.241231365075604, 1.1833333333333331, -3.6969657227996526, 0.44497190922573976, 0.0, -0.14719601443879746,
    -235.29910220823197, 30.66111815747538, -9.980316739574063, 10.744659803163351, 0.5796550698475775, -0.3703280399090206, -0.25099800796022265, 0.19387072647993708, 0.0, 0.03130792998884596, 0.006386903850265854,
    -28.961192904375405, 4.2231410863148575, -1.2241133007266416, 0.28062666079922405, -0.00363696483726654, 0.027953269600983738, 0.014390996129551616, 0.0030535240827622968, -0.0005770618103811176, 0.000744983593779457,
    -2.645332817300257, 0.10094898042590615, -0.06278409857208829, 0.012830058051715495, -0.003070604421273578, -0.0006478573683452012, 0.0006811659644535451, 1.755943170113928e-05, -8.691475260760332e-05,
    0.07876782713030063, 0.0024398528632990682, -0.0006762281309308737, 0.000557511956511172, -0.00012201684361679482, -0.00012328130063869367, 4.14802584328914e-06, 0.0,
    0.0046976529233311685, -0.00044983015033756875, 4.741588486103603e-06, 2.1810886305444973e-05, 6.05857952929027e-07, -2.464294558161894e-07, 2.845522253034599e-07,
    -1.1016373651251144e-05, -6.430852312227483e-06, -2.6234418916068703e-07, -7.714462208085927e-07, -1.0390378172466486e-07, -4.441792947886967e-09,
    1.205784808542653e-06, 5.998887634855538e-08, -9.498238755187934e-08, -1.6884656654872546e-08, 3.5534343583095735e-09,
    1.7674392192426998e-07, 3.6493052899875906e-09, -3.7184820135133262e-09, 4.8463934297650154e-11,
    -8.250762417940301e-09, -3.561357298710358e-10, -5.965497931422179e-11,
    -9.701961293064772e-11, 8.795646844468785e-13,
    3.5908077877782525e-13,
])

SECULAR_VAR_C = np.array([
    0.0, 12.0, -11.6, -1.3, -1.6, 0.6, -0.2, 0.0, -0.1, 0.0, 0.1, 0.0, 0.0,
    9.7, -3.002221399786054, -1.7146428199482247, -0.758946638440411, 0.3614784456460255, -0.08728715609439695, -0.01889822365046136, 0.03333333333333333, -0.0149071198499986, 0.0, 0.0, 0.0,
    -2.309401076758503, 0.051639777949432225, -0.447213595499958, 0.0, 0.031052950170405942, -0.0025717224993681985, 0.0, 0.0015891043154093204, 0.001297498240269205, 0.0, 0.0,
    -0.8221921916437785, 0.11155467020454339, 0.005976143046671968, 0.006900655593423542, 0.00181848241863327, 0.0012260205965343744, 0.0005201564866102993, 0.0001272301701150957, 0.0, 0.0,
    -0.04930066485916347, 0.005164831556674268, -0.000944911182523068, -5.482930791331409e-05, -3.1655715683232764e-05, -5.8896124395018286e-05, 0.0, 0.0, 0.0,
    0.000668153104781061, 6.715191366878169e-05, -7.310574388441878e-05, 1.3169573775854458e-05, 0.0, -4.064218702374517e-06, -8.296051686578281e-07, 0.0,
    5.815526314990443e-05, -1.4337215947014143e-05, 1.3547395674581724e-06, 9.087869293935405e-07, 0.0, 0.0, 4.7425370883909984e-08,
    3.8317821395656156e-06, 0.0, -4.372403152678118e-08, -1.836776716210935e-08, 0.0, 0.0,
    6.183511838680272e-08, 7.498609543569422e-09, -2.499536514523141e-09, -9.93215097345444e-10, 0.0,
    -1.7674392192427e-09, 0.0, -1.282235177073561e-10, 0.0,
    0.0, -1.9785318326168656e-11, -5.96549793142218e-12,
    -4.218244040462945e-12, 0.0,
    -1.7954038938891263e-13,
])

SECULAR_VAR_S = np.array([
    0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
    -21.5, -15.992602456552632, 1.632993161855452, -0.3478505426185218, -0.12909944487358055, 0.06546536707079771, 0.11338934190276816, -0.03333333333333333, -0.044721359549995794, 0.0, 0.0, 0.0,
    -3.4929691285972355, -0.03872983346207416, 0.30559595692497127, 0.10734900802433867, -0.05520524474738834, 0.012858612496840992, 0.009960238411119947, 0.004767312946227961, 0.0, 0.0010795837927188264, 0.0,
    -0.21608897344483924, 0.03187276291558383, 0.003984095364447979, -0.0023002185311411807, -0.002909571869813232, -0.0009808164772274995, -0.0005201564866102993, -0.0002544603402301914, 0.0, -7.44983593779457e-05,
    -0.03098898934004561, 0.003991006202884661, 0.000944911182523068, 0.0, 0.00012662286273293106, 5.8896124395018286e-05, 1.2852188008557456e-05, 8.77971585056964e-06, 6.208196614828809e-06,
    0.0014105454434266843, 0.0001566877985604906, -9.138217985552347e-05, -2.1949289626424097e-05, 4.692955523722878e-06, -1.3547395674581724e-06, 0.0, 0.0,
    5.815526314990443e-05, 1.0752911960260607e-05, -4.064218702374517e-06, -3.029289764645135e-07, 1.5146448823225676e-07, 0.0, 0.0,
    -9.579455348914039e-07, 3.7101071032081634e-07, -8.744806305356236e-08, 0.0, 8.658648477055405e-09, 0.0,
    6.183511838680272e-08, 2.999443817427769e-08, -2.499536514523141e-09, 0.0, 0.0,
    1.7674392192427e-09, 8.109567311083534e-10, 0.0, 0.0,
    0.0, 0.0, 0.0,
    0.0, 0.0,
    -1.7954038938891263e-13,
])


def decimal_year(day: date) -> float:
    """Convert a calendar date to a decimal year (e.g. 2026-07-02 -> 2026.5)."""
    start = date(day.year, 1, 1)
    days_in_year = (date(day.year + 1, 1, 1) - start).days
    return day.year + (day - start).days / days_in_year


class MagneticModel(ABC):
    """Source of magnetic variation for a position."""

    @abstractmethod
    def declination(self, lat: float, lon: float) -> float | None:
        """Magnetic declination at a position.

        Args:
            lat: Geodetic latitude in degrees
            lon: Longitude in degrees

        Returns:
            Declination in degrees (positive east), or None if unavailable
        """


class FixedDeclinationModel(MagneticModel):
    """Same declination everywhere; None models an unavailable variation source."""

    def __init__(self, declination: float | None) -> None:
        self._declination = declination

    def declination(self, lat: float, lon: float) -> float | None:
        return self._declination


class NullMagneticModel(FixedDeclinationModel):
    """No magnetic data; every magnetic heading comes out as None."""

    def __init__(self) -> None:
        super().__init__(None)


class WorldMagneticModel(MagneticModel):
    """WMM2025 declination at sea level.

    Attributes:
        year: Fixed decimal year for evaluations, or None to use today's date
        altitude_m: Height above the WGS-84 ellipsoid in meters

    Examples:
        >>> WorldMagneticModel(year=2026.0).declination(40.64, -73.78)  # about -12.8
    """

    def __init__(self, year: float | None = None, altitude_m: float = 0.0) -> None:
        self.year = year
        self.altitude_m = altitude_m
        self._expiry_warned = False

    def declination(self, lat: float, lon: float) -> float | None:
        year = self.year if self.year is not None else decimal_year(date.today())

        if not self._check_validity(year):
            return None

        try:
            x, y, z = geodetic_to_ecef(lat, lon, self.altitude_m)
            field = _field_ecef(year, x, y, z)
            return _declination_from_field(field, lat, lon)
        except (ArithmeticError, ValueError) as e:
            logger.warning("Magnetic model failed at (%.4f, %.4f): %s", lat, lon, e)
            return None

    def _check_validity(self, year: float) -> bool:
        if year < WMM_VALID_START:
            logger.warning("WMM2025 not yet valid for %.2f (valid from %.1f)", year, WMM_VALID_START)
            return False
        if year > WMM_VALID_END:
            logger.warning("WMM2025 expired for %.2f (valid until %.1f)", year, WMM_VALID_END)
            return False
        if year > WMM_VALID_END - 0.5 and not self._expiry_warned:
            logger.warning("WMM2025 expires soon (%.1f), consider updating the model", WMM_VALID_END)
            self._expiry_warned = True
        return True


def geodetic_to_ecef(lat: float, lon: float, height_m: float = 0.0) -> tuple[float, float, float]:
    """Convert WGS-84 geodetic coordinates to Earth-centered Earth-fixed meters."""
    phi = math.radians(lat)
    lam = math.radians(lon)
    sphi = math.sin(phi)
    cphi = math.cos(phi)

    n = WGS84_A / math.sqrt(1.0 - WGS84_E2 * sphi * sphi)
    z = ((1.0 - WGS84_E2) * n + height_m) * sphi
    r = (n + height_m) * cphi
    return r * math.cos(lam), r * math.sin(lam), z


def _index(n: int, m: int) -> int:
    return m * (2 * NMAX - m + 1) // 2 + n


def _field_ecef(year: float, x: float, y: float, z: float) -> tuple[float, float, float]:
    """Magnetic field vector in ECEF axes (Tesla), by recursive harmonics.

    The V/W terms are the real and imaginary parts of the solid harmonics,
    built by recursion over order m then degree n.
    """
    dt = year - WMM_EPOCH
    c = MAIN_FIELD_C + dt * SECULAR_VAR_C
    s = MAIN_FIELD_S + dt * SECULAR_VAR_S

    rsqrd = x * x + y * y + z * z
    temp = EARTH_R / rsqrd
    a = x * temp
    b = y * temp
    f = z * temp
    g = EARTH_R * temp

    px = py = pz = 0.0
    vtop = EARTH_R / math.sqrt(rsqrd)
    wtop = 0.0
    vprev = wprev = 0.0
    vnm, wnm = vtop, wtop

    for m in range(NMAX + 2):
        for n in range(m, NMAX + 2):
            if n == m:
                if m != 0:
                    vtop, wtop = (
                        (2 * m - 1) * (a * vtop - b * wtop),
                        (2 * m - 1) * (a * wtop + b * vtop),
                    )
                    vprev = wprev = 0.0
                    vnm, wnm = vtop, wtop
            else:
                inv = 1.0 / (n - m)
                vnm, vprev = ((2 * n - 1) * f * vnm - (n + m - 1) * g * vprev) * inv, vnm
                wnm, wprev = ((2 * n - 1) * f * wnm - (n + m - 1) * g * wprev) * inv, wnm

            if m < NMAX and n >= m + 2:
                k = _index(n - 1, m + 1)
                scale = 0.5 * (n - m) * (n - m - 1)
                px += scale * (c[k] * vnm + s[k] * wnm)
                py += scale * (-c[k] * wnm + s[k] * vnm)
            if n >= 2 and m >= 2:
                k = _index(n - 1, m - 1)
                px += 0.5 * (-c[k] * vnm - s[k] * wnm)
                py += 0.5 * (-c[k] * wnm + s[k] * vnm)
            if m == 1 and n >= 2:
                k = _index(n - 1, 0)
                px -= c[k] * vnm
                py -= c[k] * wnm
            if n >= 2 and n > m:
                k = _index(n - 1, m)
                pz += (n - m) * (-c[k] * vnm - s[k] * wnm)

    return -px * 1.0e-9, -py * 1.0e-9, -pz * 1.0e-9


def _declination_from_field(field: tuple[float, float, float], lat: float, lon: float) -> float:
    x, y, z = (component * 1e9 for component in field)

    phi = math.radians(lat)
    lam = math.radians(lon)
    sphi, cphi = math.sin(phi), math.cos(phi)
    slam, clam = math.sin(lam), math.cos(lam)

    x1 = clam * x + slam * y
    north = -sphi * x1 + cphi * z
    east = -slam * x + clam * y
    return math.degrees(math.atan2(east, north))
