"""
Utilitários de Criptografia

Hashes, AES-GCM (via `cryptography`), HMAC, geradores de tokens e
mascaramento de dados sensíveis para logs.
"""

import base64
import hashlib
import hmac
import re
import secrets
import string
from typing import Dict, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ITERACOES_PBKDF2 = 100_000
TAMANHO_IV = 12


# === HASHES ===

def gerar_sha256(dados: str) -> str:
    return hashlib.sha256(dados.encode('utf-8')).hexdigest()


def gerar_salt(tamanho: int = 16) -> str:
    return secrets.token_hex(tamanho)


def hash_com_salt(dados: str, salt: str = None) -> Tuple[str, str]:
    """Retorna (hash, salt). Gera um salt novo quando não informado."""
    salt = salt or gerar_salt()
    return gerar_sha256(dados + salt), salt


def verificar_hash_com_salt(dados: str, hash_esperado: str, salt: str) -> bool:
    calculado, _ = hash_com_salt(dados, salt)
    return hmac.compare_digest(calculado, hash_esperado)


def gerar_hash_arquivo(conteudo: bytes) -> str:
    return hashlib.sha256(conteudo).hexdigest()


def verificar_integridade_arquivo(conteudo: bytes, hash_esperado: str) -> bool:
    return hmac.compare_digest(gerar_hash_arquivo(conteudo), hash_esperado)


# === AES-GCM ===

def gerar_chave() -> bytes:
    return AESGCM.generate_key(bit_length=256)


def exportar_chave(chave: bytes) -> str:
    return chave.hex()


def importar_chave(chave_hex: str) -> bytes:
    chave = bytes.fromhex(chave_hex)
    if len(chave) not in (16, 24, 32):
        raise ValueError("Chave AES deve ter 128, 192 ou 256 bits.")
    return chave


def criptografar(dados: str, chave: bytes) -> Dict[str, str]:
    """Retorna {'encrypted': base64, 'iv': base64}."""
    iv = secrets.token_bytes(TAMANHO_IV)
    cifrado = AESGCM(chave).encrypt(iv, dados.encode('utf-8'), None)
    return {
        'encrypted': base64.b64encode(cifrado).decode('ascii'),
        'iv': base64.b64encode(iv).decode('ascii'),
    }


def descriptografar(cifrado_b64: str, iv_b64: str, chave: bytes) -> str:
    cifrado = base64.b64decode(cifrado_b64)
    iv = base64.b64decode(iv_b64)
    return AESGCM(chave).decrypt(iv, cifrado, None).decode('utf-8')


def _derivar_chave(senha: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=ITERACOES_PBKDF2)
    return kdf.derive(senha.encode('utf-8'))


def criptografar_com_senha(dados: str, senha: str) -> Dict[str, str]:
    salt = secrets.token_bytes(16)
    resultado = criptografar(dados, _derivar_chave(senha, salt))
    resultado['salt'] = base64.b64encode(salt).decode('ascii')
    return resultado


def descriptografar_com_senha(cifrado_b64: str, salt_b64: str, iv_b64: str, senha: str) -> str:
    chave = _derivar_chave(senha, base64.b64decode(salt_b64))
    return descriptografar(cifrado_b64, iv_b64, chave)


# === HMAC ===

def gerar_hmac(dados: str, segredo: str) -> str:
    return hmac.new(segredo.encode('utf-8'), dados.encode('utf-8'), hashlib.sha256).hexdigest()


def verificar_hmac(dados: str, assinatura: str, segredo: str) -> bool:
    return hmac.compare_digest(gerar_hmac(dados, segredo), assinatura)


# === GERADORES ===

def gerar_token_seguro(tamanho: int = 32) -> str:
    return secrets.token_urlsafe(tamanho)


def gerar_codigo_numerico(tamanho: int = 6) -> str:
    return ''.join(secrets.choice(string.digits) for _ in range(tamanho))


def gerar_id_aleatorio(tamanho: int = 8) -> str:
    alfabeto = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alfabeto) for _ in range(tamanho))


def gerar_senha_temporaria() -> str:
    """Senha que satisfaz o validador de senhas (maiúscula, minúscula, número, símbolo)."""
    return (
        secrets.choice(string.ascii_uppercase)
        + secrets.choice(string.ascii_lowercase)
        + gerar_codigo_numerico(2)
        + '@'
        + gerar_id_aleatorio(7)
    )


# === BASE64 ===

def codificar_base64(dados: str) -> str:
    return base64.b64encode(dados.encode('utf-8')).decode('ascii')


def decodificar_base64(codificado: str) -> str:
    return base64.b64decode(codificado).decode('utf-8')


def codificar_base64_url(dados: str) -> str:
    return base64.urlsafe_b64encode(dados.encode('utf-8')).decode('ascii').rstrip('=')


def decodificar_base64_url(codificado: str) -> str:
    preenchimento = '=' * (-len(codificado) % 4)
    return base64.urlsafe_b64decode(codificado + preenchimento).decode('utf-8')


# === CHECKSUM ===

def gerar_checksum(dados: str) -> int:
    """Hash de 32 bits no estilo djb2 (h * 31 + c), para detecção rápida de alteração."""
    h = 0
    for caractere in dados:
        h = (h * 31 + ord(caractere)) & 0xFFFFFFFF
    return h


def verificar_checksum(dados: str, esperado: int) -> bool:
    return gerar_checksum(dados) == esperado


# === MASCARAMENTO ===

def mascarar(dados: str, visiveis: int = 4) -> str:
    if not dados or len(dados) <= visiveis:
        return dados or ''
    return '*' * (len(dados) - visiveis) + dados[-visiveis:]


def mascarar_email(email: str) -> str:
    if not email or '@' not in email:
        return email or ''
    usuario, dominio = email.split('@', 1)
    if len(usuario) <= 2:
        return f"{usuario[0]}*@{dominio}"
    return f"{usuario[0]}{'*' * (len(usuario) - 2)}{usuario[-1]}@{dominio}"


def mascarar_telefone(telefone: str) -> str:
    digitos = re.sub(r'\D', '', telefone or '')
    if len(digitos) < 4:
        return telefone or ''
    return '*' * (len(digitos) - 4) + digitos[-4:]


def mascarar_cpf(cpf: str) -> str:
    digitos = re.sub(r'\D', '', cpf or '')
    if len(digitos) != 11:
        return cpf or ''
    return f"***.{digitos[3:6]}.***-{digitos[9:]}"
