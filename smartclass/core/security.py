"""
Validador de Segurança (lint de entradas)

Verificação por padrões (regex) de SQL Injection, XSS e padrões suspeitos,
com pontuação de risco. NÃO é a fronteira de segurança do sistema: o
isolamento real está no TenantRepository e nas políticas de papéis, e o
Firestore não interpreta SQL. Serve para rejeitar lixo óbvio e registrar
tentativas na auditoria.
"""

import re
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from wtforms.validators import ValidationError

from smartclass.core.audit import ACAO_VIOLACAO_SEGURANCA, registrar_evento
from smartclass.core.logger import get_logger

logger = get_logger(__name__)

# Tipos de violação
SQL_INJECTION = 'SQL_INJECTION'
XSS_ATTEMPT = 'XSS_ATTEMPT'
SUSPICIOUS_PATTERN = 'SUSPICIOUS_PATTERN'
MALICIOUS_FILE = 'MALICIOUS_FILE'
WEAK_PASSWORD = 'WEAK_PASSWORD'
BRUTE_FORCE = 'BRUTE_FORCE'
SUSPICIOUS_USER_AGENT = 'SUSPICIOUS_USER_AGENT'
INVALID_SESSION = 'INVALID_SESSION'

PESO_SEVERIDADE = {'LOW': 10, 'MEDIUM': 25, 'HIGH': 50, 'CRITICAL': 100}

# re.A: \w e \b só casam ASCII, então palavras acentuadas não disparam os padrões
PADROES = {
    'sql_injection': [
        re.compile(r"('|(--)|(;)|(\|)|(\*))", re.I | re.A),
        re.compile(r"(union|select|insert|delete|update|drop|create|alter|exec|execute)", re.I | re.A),
        re.compile(r"(script|javascript|vbscript|onload|onerror|onclick)", re.I | re.A),
        re.compile(r"(<|>|\"|'|%|\(|\)|\+|-|=|\[|\]|\{|\}|\||\\|\^|~|`)", re.A),
        re.compile(r"((%3C)|(<)).*((%3E)|(>))", re.I | re.A),
        re.compile(r"((%27)|(')|(--)|(%3B)|(;))", re.I | re.A),
    ],
    'xss': [
        re.compile(r"<script[^>]*>.*?</script>", re.I | re.A),
        re.compile(r"<iframe[^>]*>.*?</iframe>", re.I | re.A),
        re.compile(r"<object[^>]*>.*?</object>", re.I | re.A),
        re.compile(r"<embed[^>]*>", re.I | re.A),
        re.compile(r"<link[^>]*>", re.I | re.A),
        re.compile(r"javascript:", re.I | re.A),
        re.compile(r"vbscript:", re.I | re.A),
        re.compile(r"on\w+\s*=", re.I | re.A),
        re.compile(r"<img[^>]*src[^>]*>", re.I | re.A),
        re.compile(r"<svg[^>]*>.*?</svg>", re.I | re.A),
    ],
    'suspicious': [
        re.compile(r"\.\.[/\\]", re.A),
        re.compile(r"\b(cmd|command|exec|system|shell|eval|base64_decode)\b", re.I | re.A),
        re.compile(r"\b(wget|curl|nc|netcat|telnet|ssh|ftp)\b", re.I | re.A),
        re.compile(r"\b(passwd|shadow|hosts|config)\b", re.I | re.A),
        re.compile(r"\b(0x[0-9a-f]+|\\x[0-9a-f]{2})\b", re.I | re.A),
        re.compile(r"%[0-9a-f]{2}", re.I | re.A),
        re.compile(r"\b(union|select|from|where|order|group|having|limit)\b", re.I | re.A),
    ],
    'user_agent': [
        re.compile(r"bot|crawler|spider|scraper", re.I | re.A),
        re.compile(r"curl|wget|python|java|perl|ruby", re.I | re.A),
        re.compile(r"scanner|exploit|hack|attack", re.I | re.A),
        re.compile(r"sqlmap|nmap|nikto|burp|zap", re.I | re.A),
    ],
}

SENHAS_COMUNS = {
    '123456', 'password', '123456789', '12345678', '12345',
    'qwerty', 'abc123', 'password123', 'admin', 'letmein',
}

TIPOS_ARQUIVO_PERMITIDOS = {
    'image/jpeg', 'image/png', 'image/gif', 'image/webp',
    'application/pdf', 'text/plain', 'text/csv',
    'audio/mpeg', 'audio/ogg', 'audio/wav', 'audio/webm',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}

EXTENSOES_PERIGOSAS = {
    '.exe', '.bat', '.cmd', '.com', '.pif', '.scr', '.vbs',
    '.js', '.jar', '.php', '.asp', '.aspx', '.jsp',
}

TAMANHO_MAXIMO_ARQUIVO = 10 * 1024 * 1024

JANELA_FORCA_BRUTA = 15 * 60
MAX_TENTATIVAS = 10
IDADE_MAXIMA_HISTORICO = 24 * 60 * 60

RECOMENDACOES = [
    'Sanitizar entrada do usuário',
    'Implementar validação no lado do servidor',
    'Usar consultas parametrizadas',
    'Escapar caracteres especiais em saídas HTML',
]


@dataclass
class Violacao:
    tipo: str
    severidade: str
    mensagem: str
    detalhes: Dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'tipo': self.tipo,
            'severidade': self.severidade,
            'mensagem': self.mensagem,
            'detalhes': self.detalhes,
        }


@dataclass
class ResultadoValidacao:
    valido: bool
    violacoes: List[Violacao]
    risk_score: int
    recomendacoes: List[str]


def calcular_risco(violacoes: Iterable[Violacao]) -> int:
    return sum(PESO_SEVERIDADE.get(v.severidade, 0) for v in violacoes)


class SecurityValidator:
    """
    Validador de entradas, arquivos, senhas e comportamento (força bruta).
    """

    def __init__(self, max_risk_score: int = 70, relogio=time.time):
        self.max_risk_score = max_risk_score
        self.registrar_violacoes = True
        self._relogio = relogio
        self._historico: Dict[str, List[float]] = {}
        self._ips_bloqueados = set()
        self._lock = threading.Lock()

    # === ENTRADAS DE TEXTO ===

    def _primeiro_padrao(self, familia: str, texto: str) -> Optional[re.Pattern]:
        for padrao in PADROES[familia]:
            if padrao.search(texto):
                return padrao
        return None

    def validar_sql_injection(self, texto: str) -> List[Violacao]:
        padrao = self._primeiro_padrao('sql_injection', texto)
        if not padrao:
            return []
        return [Violacao(SQL_INJECTION, 'HIGH', 'Possível tentativa de SQL Injection detectada',
                         {'input': texto[:100], 'pattern': padrao.pattern})]

    def validar_xss(self, texto: str) -> List[Violacao]:
        padrao = self._primeiro_padrao('xss', texto)
        if not padrao:
            return []
        return [Violacao(XSS_ATTEMPT, 'HIGH', 'Possível tentativa de XSS detectada',
                         {'input': texto[:100], 'pattern': padrao.pattern})]

    def validar_padroes_suspeitos(self, texto: str) -> List[Violacao]:
        return [
            Violacao(SUSPICIOUS_PATTERN, 'MEDIUM', 'Padrão suspeito detectado na entrada',
                     {'input': texto[:100], 'pattern': padrao.pattern})
            for padrao in PADROES['suspicious'] if padrao.search(texto)
        ]

    def validar_entrada(self, texto: str, contexto: str = None) -> ResultadoValidacao:
        violacoes = (
            self.validar_sql_injection(texto)
            + self.validar_xss(texto)
            + self.validar_padroes_suspeitos(texto)
        )
        risco = calcular_risco(violacoes)

        if violacoes and self.registrar_violacoes:
            logger.warning(
                f"Violações de segurança detectadas (contexto={contexto}, risco={risco}): "
                f"{[v.tipo for v in violacoes]}"
            )
            criticas = [v for v in violacoes if v.severidade == 'CRITICAL']
            if criticas:
                registrar_evento(
                    ACAO_VIOLACAO_SEGURANCA,
                    f"Violações críticas de segurança: {', '.join(v.tipo for v in criticas)}",
                    {'violacoes': [v.to_dict() for v in criticas], 'contexto': contexto, 'risk_score': risco},
                )

        return ResultadoValidacao(
            valido=risco <= self.max_risk_score,
            violacoes=violacoes,
            risk_score=risco,
            recomendacoes=list(RECOMENDACOES) if violacoes else [],
        )

    # === SENHAS ===

    def validar_senha(self, senha: str) -> List[Violacao]:
        violacoes = []
        if len(senha) < 8:
            violacoes.append(Violacao(WEAK_PASSWORD, 'MEDIUM', 'Senha muito curta (mínimo 8 caracteres)'))

        complexidade = sum([
            bool(re.search(r'[a-z]', senha)),
            bool(re.search(r'[A-Z]', senha)),
            bool(re.search(r'\d', senha)),
            bool(re.search(r'[!@#$%^&*(),.?":{}|<>]', senha)),
        ])
        if complexidade < 3:
            violacoes.append(Violacao(
                WEAK_PASSWORD, 'MEDIUM',
                'Senha deve conter pelo menos 3 dos seguintes: minúscula, maiúscula, número, caractere especial',
            ))

        if senha.lower() in SENHAS_COMUNS:
            violacoes.append(Violacao(WEAK_PASSWORD, 'HIGH', 'Senha muito comum e facilmente adivinhável'))
        return violacoes

    # === ARQUIVOS ===

    def validar_arquivo(self, nome: str, content_type: str, tamanho: int) -> List[Violacao]:
        violacoes = []
        if content_type not in TIPOS_ARQUIVO_PERMITIDOS:
            violacoes.append(Violacao(MALICIOUS_FILE, 'HIGH', f'Tipo de arquivo não permitido: {content_type}',
                                      {'fileName': nome, 'fileType': content_type}))

        extensao = '.' + nome.rsplit('.', 1)[-1].lower() if '.' in nome else ''
        if extensao in EXTENSOES_PERIGOSAS:
            violacoes.append(Violacao(MALICIOUS_FILE, 'CRITICAL', f'Extensão de arquivo perigosa: {extensao}',
                                      {'fileName': nome, 'extension': extensao}))

        if tamanho > TAMANHO_MAXIMO_ARQUIVO:
            violacoes.append(Violacao(MALICIOUS_FILE, 'MEDIUM', 'Arquivo muito grande',
                                      {'fileName': nome, 'size': tamanho, 'maxSize': TAMANHO_MAXIMO_ARQUIVO}))
        return violacoes

    # === REQUISIÇÃO ===

    def validar_user_agent(self, user_agent: str) -> List[Violacao]:
        if self._primeiro_padrao('user_agent', user_agent):
            return [Violacao(SUSPICIOUS_USER_AGENT, 'MEDIUM', 'User Agent suspeito detectado',
                             {'userAgent': user_agent[:100]})]
        return []

    def validar_sessao(self, token: str) -> List[Violacao]:
        violacoes = []
        if not token or len(token) < 32:
            violacoes.append(Violacao(INVALID_SESSION, 'HIGH', 'Token de sessão inválido ou muito curto',
                                      {'tokenLength': len(token or '')}))
        if not re.fullmatch(r'[a-zA-Z0-9\-_.]+', token or ''):
            violacoes.append(Violacao(INVALID_SESSION, 'HIGH', 'Token de sessão contém caracteres inválidos'))
        return violacoes

    def _tentativas_recentes(self, chave: str, agora: float) -> List[float]:
        return [t for t in self._historico.get(chave, []) if agora - t < JANELA_FORCA_BRUTA]

    def validar_forca_bruta(self, identificador: str, acao: str) -> List[Violacao]:
        """Registra uma tentativa e acusa força bruta a partir de MAX_TENTATIVAS na janela."""
        chave = f"{acao}:{identificador}"
        agora = self._relogio()
        with self._lock:
            recentes = self._tentativas_recentes(chave, agora)
            violacoes = []
            if len(recentes) >= MAX_TENTATIVAS:
                violacoes.append(Violacao(BRUTE_FORCE, 'CRITICAL', 'Possível ataque de força bruta detectado', {
                    'identifier': identificador,
                    'action': acao,
                    'attempts': len(recentes),
                    'timeWindow': JANELA_FORCA_BRUTA // 60,
                }))
            recentes.append(agora)
            self._historico[chave] = recentes
        return violacoes

    def esta_bloqueado(self, identificador: str, acao: str) -> bool:
        chave = f"{acao}:{identificador}"
        with self._lock:
            return len(self._tentativas_recentes(chave, self._relogio())) >= MAX_TENTATIVAS

    def limpar_tentativas(self, identificador: str, acao: str) -> None:
        with self._lock:
            self._historico.pop(f"{acao}:{identificador}", None)

    def validar_requisicao(self, texto: str = None, user_agent: str = None, user_id: str = None,
                           token_sessao: str = None, acao: str = None, arquivos: list = None) -> ResultadoValidacao:
        """
        Combina as validações disponíveis. `arquivos` é uma lista de tuplas
        (nome, content_type, tamanho).
        """
        violacoes: List[Violacao] = []
        if texto:
            violacoes.extend(self.validar_entrada(texto).violacoes)
        if user_agent:
            violacoes.extend(self.validar_user_agent(user_agent))
        if token_sessao and user_id:
            violacoes.extend(self.validar_sessao(token_sessao))
        if user_id and acao:
            violacoes.extend(self.validar_forca_bruta(user_id, acao))
        for nome, content_type, tamanho in arquivos or []:
            violacoes.extend(self.validar_arquivo(nome, content_type, tamanho))

        risco = calcular_risco(violacoes)
        return ResultadoValidacao(
            valido=risco <= self.max_risk_score,
            violacoes=violacoes,
            risk_score=risco,
            recomendacoes=list(RECOMENDACOES) if violacoes else [],
        )

    # === GERENCIAMENTO ===

    def bloquear_ip(self, ip: str) -> None:
        self._ips_bloqueados.add(ip)
        logger.warning(f"IP bloqueado: {ip}")

    def desbloquear_ip(self, ip: str) -> None:
        self._ips_bloqueados.discard(ip)
        logger.info(f"IP desbloqueado: {ip}")

    def ip_bloqueado(self, ip: str) -> bool:
        return ip in self._ips_bloqueados

    @staticmethod
    def sanitizar(texto: str) -> str:
        entidades = {'<': '&lt;', '>': '&gt;', '"': '&quot;', "'": '&#x27;', '&': '&amp;'}
        return re.sub(r'[<>"\'&]', lambda m: entidades[m.group(0)], texto).strip()

    def limpar(self) -> None:
        """Descarta o histórico de tentativas com mais de 24 horas."""
        agora = self._relogio()
        with self._lock:
            for chave in list(self._historico):
                recentes = [t for t in self._historico[chave] if agora - t < IDADE_MAXIMA_HISTORICO]
                if recentes:
                    self._historico[chave] = recentes
                else:
                    del self._historico[chave]


# Instância única usada pela aplicação
validador = SecurityValidator()


class EntradaSegura:
    """
    Validador WTForms: rejeita campos de texto com risco acima do limite.
    """

    def __init__(self, message: str = None):
        self.message = message or 'Entrada contém padrões não permitidos.'

    def __call__(self, form, field):
        if not isinstance(field.data, str) or not field.data:
            return
        resultado = validador.validar_entrada(field.data, contexto=field.name)
        if not resultado.valido:
            raise ValidationError(self.message)
