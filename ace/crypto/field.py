"""
ACE 기반 모듈: 스칼라 필드 및 alt_bn128 타원곡선 연산
=========================================================

노트 커밋먼트 검증 전체에서 사용되는 대수적 도구를 정의한다.

**유한체 FR**:
  bn128 타원곡선의 스칼라 필드. 챌린지, kBar, aBar 등 증명 안의 모든
  스칼라는 이 필드의 원소로 해석된다.

**타원곡선 연산**:
  노트 (γ, σ)와 신뢰 설정 점 h는 G1 위의 점, t2는 G2 위의 점이다.
  점은 py_ecc.bn128의 아핀 좌표 (FQ, FQ) 튜플로 표현하고,
  무한원점은 None으로 표현한다.

  스칼라 곱셈과 페어링은 내부적으로 py_ecc.optimized_bn128의
  Jacobian 좌표를 사용해 계산한 뒤 아핀 좌표로 되돌린다.

**페어링 검사**:
  pairing_check()는 여러 개의 Miller loop 결과를 곱한 뒤
  최종 거듭제곱(final exponentiation)을 한 번만 수행한다.

사용 예시:
    >>> from ace.crypto.field import FR, G1, G2, ec_mul, pairing_check
    >>> P = ec_mul(G1, FR(5))
    >>> pairing_check([(P, G2), (ec_neg(P), G2)])  # True
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128
from py_ecc import optimized_bn128 as optimized


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 연산을 제공한다.

    예시:
        >>> FR(-1) == FR(CURVE_ORDER - 1)  # True
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (스칼라 필드 크기)
CURVE_ORDER = bn128.curve_order

# 기저 필드 위수 (좌표 필드 크기)
FIELD_MODULUS = bn128.field_modulus


# ─────────────────────────────────────────────────────────────────────
# 타원곡선 상수
# ─────────────────────────────────────────────────────────────────────

G1 = bn128.G1

G2 = bn128.G2

# 무한원점 (항등원)
Z1 = None


# ─────────────────────────────────────────────────────────────────────
# 좌표 변환 (아핀 <-> Jacobian)
# ─────────────────────────────────────────────────────────────────────

def _is_g2_point(point):
    return isinstance(point[0], bn128.FQ2)


def _to_jacobian(point):
    """아핀 bn128 점을 optimized_bn128의 Jacobian 점으로 변환한다."""
    if point is None:
        return optimized.Z1
    x, y = point
    if _is_g2_point(point):
        return (
            optimized.FQ2([int(c) for c in x.coeffs]),
            optimized.FQ2([int(c) for c in y.coeffs]),
            optimized.FQ2.one(),
        )
    return (optimized.FQ(int(x)), optimized.FQ(int(y)), optimized.FQ.one())


def _to_jacobian_g2(point):
    if point is None:
        return optimized.Z2
    return _to_jacobian(point)


def _from_jacobian(point):
    """Jacobian 점을 아핀 bn128 점으로 되돌린다 (무한원점은 None)."""
    if optimized.is_inf(point):
        return None
    x, y = optimized.normalize(point)
    if isinstance(x, optimized.FQ2):
        return (
            bn128.FQ2([int(c) for c in x.coeffs]),
            bn128.FQ2([int(c) for c in y.coeffs]),
        )
    return (FQ(int(x)), FQ(int(y)))


def _scalar(value):
    return int(value) % CURVE_ORDER


# ─────────────────────────────────────────────────────────────────────
# 점 연산
# ─────────────────────────────────────────────────────────────────────

def ec_mul(point, scalar):
    """타원곡선 스칼라 곱셈: scalar · point.

    Args:
        point: G1 또는 G2 위의 점 (None이면 무한원점)
        scalar: 정수 또는 FR 원소

    Returns:
        scalar · point (같은 그룹의 점)
    """
    if point is None:
        return None
    return _from_jacobian(optimized.multiply(_to_jacobian(point), _scalar(scalar)))


def ec_add(p1, p2):
    """타원곡선 점 덧셈: p1 + p2."""
    return bn128.add(p1, p2)


def ec_neg(point):
    """타원곡선 점의 역원: -point."""
    return bn128.neg(point)


def ec_lincomb(terms):
    """선형 결합 Σ sᵢ·Pᵢ 를 계산한다.

    모든 항을 Jacobian 좌표로 누적한 뒤 마지막에 한 번만 정규화한다.

    Args:
        terms: (point, scalar) 튜플의 리스트. 모두 같은 그룹이어야 한다.

    Returns:
        결과 점 (무한원점이면 None)

    예시:
        >>> B = ec_lincomb([(gamma, k_bar), (h, a_bar), (sigma, -c)])
    """
    acc = None
    for point, scalar in terms:
        if point is None:
            continue
        term = optimized.multiply(_to_jacobian(point), _scalar(scalar))
        acc = term if acc is None else optimized.add(acc, term)
    if acc is None:
        return None
    return _from_jacobian(acc)


def ec_pairing(g2_point, g1_point):
    """쌍선형 페어링 e(G1, G2) → GT.

    주의:
        인자 순서는 py_ecc와 같이 (G2, G1)이다.
    """
    return optimized.pairing(_to_jacobian_g2(g2_point), _to_jacobian(g1_point))


def pairing_check(pairs):
    """Π e(Pᵢ, Qᵢ) == 1 인지 검사한다.

    Args:
        pairs: (g1_point, g2_point) 튜플의 리스트

    Returns:
        bool: 페어링 곱이 GT의 항등원이면 True

    Raises:
        ValueError: 곡선 위에 있지 않은 점이 포함된 경우 (py_ecc)
    """
    acc = optimized.FQ12.one()
    for g1_point, g2_point in pairs:
        acc = acc * optimized.pairing(
            _to_jacobian_g2(g2_point),
            _to_jacobian(g1_point),
            final_exponentiate=False,
        )
    return optimized.final_exponentiate(acc) == optimized.FQ12.one()


# ─────────────────────────────────────────────────────────────────────
# 점 유효성 검사
# ─────────────────────────────────────────────────────────────────────

def is_on_g1(point):
    """점이 G1 곡선 y² = x³ + 3 위에 있고 무한원점이 아닌지 검사한다.

    좌표가 기저 필드 범위(< p)를 벗어나면 False를 반환한다.
    """
    if point is None:
        return False
    x, y = point
    if not (0 <= int(x) < FIELD_MODULUS and 0 <= int(y) < FIELD_MODULUS):
        return False
    if int(x) == 0 and int(y) == 0:
        return False
    return bn128.is_on_curve(point, bn128.b)


def is_on_g2(point):
    """점이 G2 꼬인 곡선(twist) 위에 있고 무한원점이 아닌지 검사한다."""
    if point is None:
        return False
    x, y = point
    coords = list(x.coeffs) + list(y.coeffs)
    if not all(0 <= int(c) < FIELD_MODULUS for c in coords):
        return False
    if all(int(c) == 0 for c in coords):
        return False
    return bn128.is_on_curve(point, bn128.b2)


def g2_in_subgroup(point):
    """G2 점이 위수 CURVE_ORDER 인 부분군에 속하는지 검사한다.

    꼬인 곡선의 보조인자(cofactor)가 1이 아니므로 곡선 위에 있다는
    것만으로는 충분하지 않다.
    """
    if not is_on_g2(point):
        return False
    return optimized.is_inf(optimized.multiply(_to_jacobian(point), CURVE_ORDER))


def point_from_ints(x, y):
    """두 정수 좌표로 G1 점을 만든다 (검증은 하지 않는다)."""
    return (FQ(x), FQ(y))


def g2_from_ints(x_imag, x_real, y_imag, y_real):
    """네 정수 좌표로 G2 점을 만든다.

    좌표 순서는 EVM 프리컴파일 관례를 따라 허수부가 먼저 온다.
    """
    return (bn128.FQ2([x_real, x_imag]), bn128.FQ2([y_real, y_imag]))


def g2_to_ints(point):
    """G2 점을 (x_imag, x_real, y_imag, y_real) 정수 튜플로 변환한다."""
    x, y = point
    return (int(x.coeffs[1]), int(x.coeffs[0]), int(y.coeffs[1]), int(y.coeffs[0]))
