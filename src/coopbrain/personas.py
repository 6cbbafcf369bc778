"""Chat surfaces offered by the client and their assistant configuration."""

from .config import get_chat_assistant_id, get_negotiator_assistant_id
from .core import Persona

DEFAULT_USER_NAME = "Usuário"

CHAT_WELCOME = (
    "Olá, {user_name}! 👋\n\n"
    "Estou pronto para te ajudar com dúvidas sobre seguros, crédito, consórcio "
    "e processos da cooperativa.\n\n"
    "Pode me perguntar qualquer coisa sobre:\n"
    "• Produtos e serviços\n"
    "• Estatutos e regulamentos\n"
    "• Formulários e documentos\n"
    "• Processos internos\n\n"
    "Como posso ajudar hoje?"
)

NEGOTIATOR_WELCOME = (
    "Olá, {user_name}! 💼\n\n"
    "Sou seu **Assistente de Negociação**. Estou aqui para te ajudar a fechar "
    "mais negócios com argumentos poderosos e estratégias eficazes.\n\n"
    "**Como posso potencializar suas vendas hoje?**\n\n"
    "🎯 Criar argumentos de venda personalizados\n"
    "💡 Superar objeções de clientes\n"
    "📊 Desenvolver estratégias de negociação\n"
    "🔥 Preparar pitches convincentes"
)

NEGOTIATOR_QUICK_ACTIONS = {
    "Argumentos": "Me ajude a criar argumentos de venda convincentes para produtos da cooperativa",
    "Objeções": "Quais são as melhores formas de superar objeções comuns de clientes?",
    "Estratégias": "Me dê estratégias de negociação para fechar mais vendas",
    "Pitch": "Crie um pitch de elevador impactante para nossos produtos",
}


def get_personas() -> list[Persona]:
    """Return every persona, with assistant ids resolved from the environment."""
    return [
        Persona(
            name="chat",
            title="Assistente Inteligente",
            assistant_id=get_chat_assistant_id(),
            welcome=CHAT_WELCOME,
            error_text="❌ Erro ao conectar com o assistente. Tente novamente.",
        ),
        Persona(
            name="negotiator",
            title="Negociador Inteligente",
            assistant_id=get_negotiator_assistant_id(),
            welcome=NEGOTIATOR_WELCOME,
            error_text="❌ Erro ao conectar. Tente novamente.",
            quick_actions=dict(NEGOTIATOR_QUICK_ACTIONS),
        ),
    ]


def get_persona(name: str) -> Persona | None:
    """Find a persona by name."""
    for persona in get_personas():
        if persona.name == name:
            return persona
    return None
