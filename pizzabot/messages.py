from pizzabot import config

MAIN_MENU_OPTIONS = """Escolha uma opção:

*1* - 🛒 Fazer Pedido
*2* - 📋 Consultar Pedido
*3* - 📍 Horário e Localização
*4* - 📞 Falar com Atendente

Digite o número da opção desejada:"""

PAYMENT_OPTIONS = """💳 *Forma de Pagamento:*

*1* - 💵 Dinheiro
*2* - 💳 Cartão de Crédito{card_note}
*3* - 💳 Cartão de Débito{card_note}
*4* - 📱 PIX

Digite o número da opção:"""


class BotMessages:
    """Collection of customer-facing texts for the WhatsApp bot"""

    ITEM_ADDED_OPTIONS = """*1* - Adicionar mais itens
*2* - Finalizar pedido

Digite o número da opção:"""

    CART_OPTIONS = """*1* - Continuar comprando
*2* - Remover item
*3* - Finalizar pedido
*0* - Cancelar pedido"""

    DELIVERY_TYPE = """🚗 *Tipo de Entrega*

*1* - 🛵 Entrega (Taxa a calcular)
*2* - 🏪 Retirar no balcão (Grátis)

Digite o número da opção:"""

    REGISTER_START = """📝 *Cadastro*

Para fazer seu pedido, preciso de algumas informações.

Qual é o seu *nome*?"""

    ASK_DELIVERY_ADDRESS = """📍 *Endereço de Entrega*

Para entregar seu pedido, preciso do seu endereço completo.

Digite seu *endereço* (Rua, número, complemento):"""

    HUMAN_HANDOFF = """📞 *Falar com Atendente*

Um momento, estamos direcionando você para um de nossos atendentes.

Enquanto isso, você pode enviar sua dúvida ou solicitação que responderemos em breve! 😊

Digite *0* para voltar ao menu principal."""

    GENERIC_ERROR = """❌ Não consegui completar essa etapa agora.

Por favor, tente novamente ou digite *menu* para recomeçar."""

    TRANSPORT_ERROR = "❌ Desculpe, ocorreu um erro. Por favor, tente novamente digitando *menu* para voltar ao menu principal."

    UNSUPPORTED_MESSAGE = "Recebi sua mensagem, mas no momento só consigo entender textos. Por favor, envie uma mensagem de texto. 😊"

    INVALID_NAME = "❌ Por favor, digite um nome válido."
    INVALID_ADDRESS = "❌ Por favor, digite um endereço válido com rua e número."
    INVALID_NEIGHBORHOOD = "❌ Por favor, digite o número do bairro ou o nome do bairro."
    INVALID_CATEGORY = "❌ Opção inválida. Digite o número da categoria desejada ou *0* para voltar."
    INVALID_SIZE = "❌ Opção inválida. Digite o número do tamanho desejado ou *0* para voltar."
    INVALID_TOPPING = "❌ Opção inválida. Digite o número do sabor desejado ou *0* para voltar."
    INVALID_CRUST = "❌ Opção inválida. Digite o número da borda desejada."
    INVALID_PRODUCT = "❌ Opção inválida. Digite o número do produto desejado ou *0* para voltar."
    INVALID_ITEM_ADDED = "❌ Digite *1* para adicionar mais itens ou *2* para finalizar."
    INVALID_CART = "❌ Opção inválida. Digite 1, 2, 3 ou 0."
    INVALID_REMOVE = "❌ Opção inválida. Digite o número do item que deseja remover ou *0* para voltar."
    INVALID_DELIVERY_TYPE = "❌ Digite *1* para entrega ou *2* para retirada."
    INVALID_PAYMENT = "❌ Opção inválida. Digite um número de 1 a 4."
    INVALID_CONFIRMATION = "❌ Digite *1* para confirmar ou *2* para cancelar."
    INVALID_ORDER = "❌ Opção inválida. Digite o número do pedido ou *0* para voltar."

    ORDER_CANCELLED = """❌ Pedido cancelado.

Digite *1* para fazer um novo pedido ou *0* para menu principal."""

    NEEDS_ORDER_TO_TRACK = """❌ Você precisa ter feito pelo menos um pedido para consultar.

Digite *1* para fazer um pedido ou *0* para voltar ao menu."""

    NO_ORDERS = """📋 *Seus Pedidos*

Você ainda não fez nenhum pedido.

Digite *1* para fazer um pedido."""

    EMPTY_CART = """🛒 Seu carrinho está vazio!

Digite *1* para fazer um pedido."""

    @staticmethod
    def header() -> str:
        return f"🍕 *{config.PIZZERIA_NAME}* 🍕"

    @classmethod
    def main_menu(cls) -> str:
        return f"""{cls.header()}
Olá! Seja bem-vindo(a)!

{MAIN_MENU_OPTIONS}"""

    @classmethod
    def welcome_back(cls, name: str) -> str:
        return f"""{cls.header()}
Olá, *{name}*! Que bom ter você de volta! 😊

{MAIN_MENU_OPTIONS}"""

    @classmethod
    def invalid_main_option(cls) -> str:
        return f"""❌ Opção inválida. Por favor, digite um número de 1 a 4.

{cls.main_menu()}"""

    @staticmethod
    def info() -> str:
        return f"""📍 *Horário e Localização*

🕐 *Horário de Funcionamento:*
{config.OPENING_HOURS}

📍 *Endereço:*
{config.PIZZERIA_ADDRESS}

📱 *Telefone:* {config.PIZZERIA_PHONE}

Digite *0* para voltar ao menu principal."""

    @staticmethod
    def payment_options(delivery: bool) -> str:
        return PAYMENT_OPTIONS.format(card_note=" (na entrega)" if delivery else "")

    @staticmethod
    def pix_instructions() -> str:
        return f"📱 *Chave PIX:* {config.PIX_KEY} ({config.PIX_HOLDER})"
