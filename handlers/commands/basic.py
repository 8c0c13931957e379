# handlers/commands/basic.py

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from services.goal_service import get_goal_service

async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = update.effective_user
    document = get_goal_service().load_document(user.id)
    await update.message.reply_text(
        f"Привет, {user.first_name or 'друг'}! 👋\n"
        f"Твоя мандала: {document.mandala.vision}\n"
        "Введи /help для списка команд."
    )

async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    help_text = (
        "🛠 <b>Доступные команды</b>:\n"
        "/done &lt;подзадача&gt; — отметить выполнение\n"
        "done &lt;подзадача&gt; — то же обычным сообщением\n"
        "/stats — уровень, опыт и серия\n"
        "/export — выгрузить мандалу и список задач в Markdown\n"
        "/import_mandala — загрузить заголовки из последней мандалы\n"
        "/import_tasks — загрузить последний список задач\n"
        "/sync — импорт задач и экспорт; /sync on|off — автоэкспорт"
    )
    await update.message.reply_html(help_text)

def register_basic_handlers(application: Application):
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
