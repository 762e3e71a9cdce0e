"""
Exceções de domínio da aplicação.

Os services levantam estas exceções; a factory (smartclass/__init__.py)
converte cada uma em resposta JSON com o status HTTP correspondente.
"""


class SmartClassError(Exception):
    """Erro base da aplicação."""

    status_code = 400
    mensagem_padrao = "Não foi possível concluir a operação."

    def __init__(self, mensagem: str = None, detalhes: dict = None):
        super().__init__(mensagem or self.mensagem_padrao)
        self.mensagem = mensagem or self.mensagem_padrao
        self.detalhes = detalhes or {}

    def to_dict(self) -> dict:
        corpo = {'erro': self.mensagem}
        if self.detalhes:
            corpo['detalhes'] = self.detalhes
        return corpo


class DadosInvalidos(SmartClassError):
    status_code = 400
    mensagem_padrao = "Dados inválidos."


class NaoAutenticado(SmartClassError):
    status_code = 401
    mensagem_padrao = "Sessão expirada. Faça login novamente."


class AcessoNegado(SmartClassError):
    status_code = 403
    mensagem_padrao = "Você não tem permissão para esta operação."


class RegistroNaoEncontrado(SmartClassError):
    status_code = 404
    mensagem_padrao = "Registro não encontrado."


class Conflito(SmartClassError):
    status_code = 409
    mensagem_padrao = "O registro já existe."


class ServicoIndisponivel(SmartClassError):
    status_code = 503
    mensagem_padrao = "Serviço temporariamente indisponível."


class MuitasTentativas(SmartClassError):
    status_code = 429
    mensagem_padrao = "Muitas tentativas. Aguarde alguns minutos e tente novamente."
