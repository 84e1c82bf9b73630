"""
공개 토큰 원장 (Public Ledger) 및 퍼밋
========================================

노트 레지스트리가 기밀 노트와 짝을 맞추는 공개 토큰 원장.
엔진은 원장을 transfer / transfer_from / permit 호출로만 사용한다.

**Token**:
  메모리 위의 ERC20 유사 원장. 잔액, 허용량(allowance), 퍼밋 nonce를 가진다.
  allowance가 MAX_UINT256이면 무제한으로 취급하여 차감하지 않는다.

**퍼밋 (permit)**:
  보유자(holder)가 오프체인에서 서명한 메시지로 spender의 허용량을 설정한다.

    Permit(address holder,address spender,uint256 nonce,uint256 expiry,bool allowed)

  - 서명자 ≠ holder 또는 0 주소  → PermitInvalid("invalid-permit")
  - expiry ≠ 0 이고 now > expiry → PermitInvalid("permit-expired")
  - nonce ≠ 저장된 nonce         → PermitInvalid("invalid-nonce")
  - 성공하면 nonce += 1, allowance = MAX_UINT256 (allowed) 또는 0

사용 예시:
    >>> token = Token("Test Token", address=token_address, chain_id=1)
    >>> token.mint(alice, 100)
    >>> token.permit(alice, spender, 0, EXPIRY_NEVER, True, signature)
"""

import logging
import time

from ace.crypto.eip712 import domain_separator, hash_message, hash_struct, recover_signer
from ace.encoding import (
    UINT256_MAX, ZERO_ADDRESS, address_to_word, normalize_address, uint_to_word,
)
from ace.errors import InsufficientFunds, MalformedInput, PermitInvalid

logger = logging.getLogger(__name__)

MAX_UINT256 = UINT256_MAX

EXPIRY_NEVER = 0

PERMIT_TYPE = (
    "Permit(address holder,address spender,uint256 nonce,uint256 expiry,bool allowed)"
)


class Permit:
    """퍼밋 서명 묶음. holder와 spender는 호출 문맥에서 정해진다."""

    def __init__(self, nonce, expiry, allowed, signature):
        self.nonce = int(nonce)
        self.expiry = int(expiry)
        self.allowed = bool(allowed)
        self.signature = bytes(signature)

    def to_dict(self):
        return {
            "nonce": self.nonce,
            "expiry": self.expiry,
            "allowed": self.allowed,
            "signature": "0x" + self.signature.hex(),
        }


class PublicLedger:
    """엔진이 사용하는 공개 원장 인터페이스."""

    address = ZERO_ADDRESS

    def balance_of(self, owner):
        raise NotImplementedError

    def allowance(self, owner, spender):
        raise NotImplementedError

    def transfer(self, caller, to, value):
        raise NotImplementedError

    def transfer_from(self, caller, source, to, value):
        raise NotImplementedError

    def approve(self, caller, spender, value):
        raise NotImplementedError

    def permit(self, holder, spender, nonce, expiry, allowed, signature):
        raise NotImplementedError

    def snapshot(self):
        raise NotImplementedError

    def restore(self, snapshot):
        raise NotImplementedError


class Token(PublicLedger):
    """메모리 위의 퍼밋 지원 토큰.

    Args:
        name: EIP-712 도메인 이름
        address: 토큰 주소 (도메인의 verifyingContract)
        chain_id: 체인 ID
        version: 도메인 버전 (기본값 "1")
        clock: 현재 시각(초)을 반환하는 함수
    """

    def __init__(self, name, address, chain_id=1, version="1", clock=None):
        self.name = name
        self.address = normalize_address(address)
        self.chain_id = chain_id
        self.version = version
        self.clock = clock or time.time
        self.balances = {}
        self.allowances = {}
        self.nonces = {}
        self.total_supply = 0

    @property
    def domain_separator(self):
        return domain_separator(self.name, self.version, self.chain_id, self.address)

    def balance_of(self, owner):
        return self.balances.get(normalize_address(owner), 0)

    def allowance(self, owner, spender):
        return self.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def nonce_of(self, owner):
        return self.nonces.get(normalize_address(owner), 0)

    def mint(self, to, value):
        to = normalize_address(to)
        self.balances[to] = self.balances.get(to, 0) + value
        self.total_supply += value

    def _move(self, source, to, value):
        if value < 0:
            raise MalformedInput("transfer value cannot be negative")
        if self.balances.get(source, 0) < value:
            raise InsufficientFunds("insufficient-balance")
        self.balances[source] = self.balances.get(source, 0) - value
        self.balances[to] = self.balances.get(to, 0) + value
        logger.debug("%s: %s -> %s %d", self.name, source, to, value)

    def transfer(self, caller, to, value):
        self._move(normalize_address(caller), normalize_address(to), value)
        return True

    def transfer_from(self, caller, source, to, value):
        """caller가 source의 허용량을 사용하여 to에게 보낸다."""
        caller = normalize_address(caller)
        source = normalize_address(source)
        if source != caller:
            allowed = self.allowance(source, caller)
            if allowed != MAX_UINT256:
                if allowed < value:
                    raise InsufficientFunds("insufficient-allowance")
                self.allowances[(source, caller)] = allowed - value
        self._move(source, normalize_address(to), value)
        return True

    def approve(self, caller, spender, value):
        self.allowances[(normalize_address(caller), normalize_address(spender))] = value
        return True

    def permit_digest(self, holder, spender, nonce, expiry, allowed):
        """퍼밋 메시지의 EIP-712 다이제스트."""
        struct_hash = hash_struct(PERMIT_TYPE, [
            address_to_word(holder),
            address_to_word(spender),
            uint_to_word(nonce),
            uint_to_word(expiry),
            uint_to_word(1 if allowed else 0),
        ])
        return hash_message(self.domain_separator, struct_hash)

    def permit(self, holder, spender, nonce, expiry, allowed, signature):
        """서명된 퍼밋으로 spender의 허용량을 설정한다.

        Raises:
            PermitInvalid: 서명, 만료, nonce 중 하나라도 틀린 경우
        """
        holder = normalize_address(holder)
        spender = normalize_address(spender)
        digest = self.permit_digest(holder, spender, nonce, expiry, allowed)
        signer = recover_signer(digest, signature)
        if signer == ZERO_ADDRESS or signer != holder:
            raise PermitInvalid("invalid-permit")
        if expiry != EXPIRY_NEVER and self.clock() > expiry:
            raise PermitInvalid("permit-expired")
        if nonce != self.nonce_of(holder):
            raise PermitInvalid("invalid-nonce")
        self.nonces[holder] = nonce + 1
        self.allowances[(holder, spender)] = MAX_UINT256 if allowed else 0
        logger.info("%s: permit %s -> %s allowed=%s", self.name, holder, spender, allowed)

    def snapshot(self):
        return (dict(self.balances), dict(self.allowances), dict(self.nonces), self.total_supply)

    def restore(self, snapshot):
        balances, allowances, nonces, total_supply = snapshot
        self.balances = balances
        self.allowances = allowances
        self.nonces = nonces
        self.total_supply = total_supply
