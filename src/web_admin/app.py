import os

# Настройка пути хранения локальных данных NiceGUI (чтобы не создавать папку .nicegui в корне)
os.environ.setdefault('NICEGUI_STORAGE_PATH', '/tmp/ride_admin_nicegui')

from nicegui import app, ui
from src.config import settings
from src.common.logger import log_info, TypeMsg
from src.web_admin.pages.sos_alert import sos_alert_page

def create_app() -> None:

    def menu():
        ui.link('Главная', '/').classes('block mb-2')

    def layout():
        with ui.header().classes(replace='row items-center') as header:
            ui.button(on_click=lambda: left_drawer.toggle(), icon='menu').props('flat color=white')
            ui.label('Ride Admin').classes('text-h6 ml-4')

        with ui.left_drawer(value=True) as left_drawer:
            ui.label('Меню').classes('text-h6 q-mb-md')
            menu()

    @ui.page('/')
    async def index_page():
        layout()
        ui.label('Добро пожаловать в админ-панель!').classes('text-h4')

        with ui.row().classes('items-center mt-4'):
            alert_input = ui.input('ID SOS-алерта')
            ui.button('Открыть', on_click=lambda: ui.navigate.to(f'/sos/{alert_input.value}') if alert_input.value else None)

    @ui.page('/sos/{alert_id}')
    async def page_sos_alert(alert_id: str):
        layout()
        await sos_alert_page(alert_id)

    @app.on_startup
    async def startup() -> None:
        await log_info("Web Admin UI started", type_msg=TypeMsg.INFO)

def run_web(host: str = "0.0.0.0", port: int = 8082, reload: bool = False) -> None:
    create_app()
    ui.run(host=host, port=port, reload=reload, title="Ride Admin", storage_secret=settings.system.STORAGE_SECRET)
