"""
Script Utilitário: setup_admin.py
Use este script para promover um usuário a Administrador manualmente.
"""

from smartclass import create_app
from smartclass.auth import services as auth_services
from smartclass.core.constants import COLECAO_PERFIS, PAPEL_ADMIN
from smartclass.core.database import get_db

# Inicializa a aplicação para carregar configurações e banco de dados
app = create_app()


def promover_usuario(email):
    print(f"--- Promovendo usuário: {email} ---")

    # Precisamos do contexto da aplicação para acessar o Firestore corretamente
    with app.app_context():
        perfil = auth_services.buscar_perfil_por_email(email)

        if not perfil:
            print(f"❌ ERRO: O usuário '{email}' não foi encontrado no banco de dados.")
            print("DICA: Cadastre a escola ou aceite o convite recebido antes de promover o usuário.")
            return

        get_db().collection(COLECAO_PERFIS).document(perfil['id']).update({'tipo_usuario': PAPEL_ADMIN})

        print(f"✅ SUCESSO! O usuário '{email}' agora é um ADMIN da escola {perfil.get('school_id')}.")
        print("⚠️  IMPORTANTE: O novo papel vale a partir da próxima requisição do usuário.")


if __name__ == "__main__":
    email_alvo = input("Digite o e-mail do usuário que será Admin: ").strip()
    promover_usuario(email_alvo)
