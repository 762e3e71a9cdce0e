"""
Constantes Globais do Sistema.
Fonte Única da Verdade para coleções, papéis e estados usados pelos módulos.
"""

# === COLEÇÕES DO FIRESTORE ===
COLECAO_ESCOLAS = 'schools'
COLECAO_PERFIS = 'profiles'
COLECAO_CURSOS = 'cursos'
COLECAO_TURMAS = 'turmas'
COLECAO_PROFESSORES = 'professores'
COLECAO_ALUNOS = 'alunos'
COLECAO_AULAS = 'aulas'
COLECAO_CHAMADAS = 'chamadas'
COLECAO_PRESENCAS = 'presencas'
COLECAO_FINANCEIRO = 'financeiro'
COLECAO_CONVERSAS = 'conversations'
COLECAO_MENSAGENS = 'messages'
COLECAO_ENQUETES = 'polls'
COLECAO_VOTOS = 'poll_votes'
COLECAO_AUDITORIA = 'audit_logs'

# === PAPÉIS (tipo_usuario) ===
PAPEL_ADMIN = 'admin'
PAPEL_DIRETOR = 'diretor'
PAPEL_SECRETARIO = 'secretario'
PAPEL_PROFESSOR = 'professor'
PAPEL_ALUNO = 'aluno'
PAPEL_RESPONSAVEL = 'responsavel'

PAPEIS = (PAPEL_ADMIN, PAPEL_DIRETOR, PAPEL_SECRETARIO, PAPEL_PROFESSOR, PAPEL_ALUNO, PAPEL_RESPONSAVEL)

PAPEIS_DIRECAO = (PAPEL_ADMIN, PAPEL_DIRETOR)
PAPEIS_GESTAO = (PAPEL_ADMIN, PAPEL_DIRETOR, PAPEL_SECRETARIO)
PAPEIS_PEDAGOGICOS = PAPEIS_GESTAO + (PAPEL_PROFESSOR,)

# Quem pode ser convidado (invite-user) e quem pode ser criado direto (create-access)
PAPEIS_CONVITE = (PAPEL_PROFESSOR, PAPEL_ALUNO, PAPEL_SECRETARIO)
PAPEIS_CRIACAO_ACESSO = (PAPEL_PROFESSOR, PAPEL_ALUNO, PAPEL_DIRETOR, PAPEL_SECRETARIO)

# Política de gestão por coleção (espelha as políticas de RLS da escola).
# Leitura: qualquer membro da escola. Escrita: apenas os papéis listados.
POLITICA_GESTAO = {
    COLECAO_PERFIS: PAPEIS_DIRECAO,
    COLECAO_CURSOS: PAPEIS_GESTAO,
    COLECAO_TURMAS: PAPEIS_GESTAO,
    COLECAO_PROFESSORES: PAPEIS_GESTAO,
    COLECAO_ALUNOS: PAPEIS_GESTAO,
    COLECAO_FINANCEIRO: PAPEIS_GESTAO,
    COLECAO_AULAS: PAPEIS_PEDAGOGICOS,
    COLECAO_CHAMADAS: PAPEIS_PEDAGOGICOS,
    COLECAO_PRESENCAS: PAPEIS_PEDAGOGICOS,
}

# === ESTADOS ===
STATUS_PERFIL_ATIVO = 'ativo'
STATUS_PERFIL_CONVIDADO = 'convidado'

STATUS_AULA = ('agendada', 'realizada', 'cancelada')

PRESENTE = 'presente'
AUSENTE = 'ausente'
JUSTIFICADO = 'justificado'
STATUS_PRESENCA = (PRESENTE, AUSENTE, JUSTIFICADO)

TIPOS_LANCAMENTO = ('receita', 'despesa')
STATUS_PAGAMENTO = ('pendente', 'pago', 'atrasado', 'cancelado')
METODOS_PAGAMENTO = ('dinheiro', 'pix', 'cartao_credito', 'cartao_debito', 'boleto', 'transferencia')

TIPOS_ANEXO = ('image', 'document', 'audio', 'poll')

DIAS_SEMANA = ('segunda', 'terca', 'quarta', 'quinta', 'sexta', 'sabado', 'domingo')
NIVEIS = ('iniciante', 'intermediario', 'avancado')

# Tabela de avaliação do professor a partir da presença média (limite, nota)
TABELA_AVALIACAO = (
    (95, 5.0),
    (90, 4.8),
    (85, 4.5),
    (80, 4.2),
    (75, 4.0),
    (70, 3.8),
    (65, 3.5),
    (60, 3.2),
)
AVALIACAO_ABAIXO_DE_60 = 2.8
AVALIACAO_SEM_AULAS = 3.0
