from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Identity comes from the upstream gateway headers, see auth.py
    from trivia_arena import auth  # noqa: F401

    from trivia_arena.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Import and register blueprints here
    from trivia_arena.main import main
    flask_app.register_blueprint(main)

    from trivia_arena.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from trivia_arena.api.answers import answers
    flask_app.register_blueprint(answers, url_prefix='/api/answers')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from trivia_arena.models import TriviaRoom, TriviaQuestion
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed a demo room
            room = TriviaRoom(host_user_id='demo-host', name='Friday Fun Quiz', access_code='DEMO')
            db.session.add(room)
            seed_questions = [
                ('What is the capital of France?', 'Berlin', 'Paris', 'Rome', 'Madrid', 'B'),
                ('How many legs does a spider have?', '6', '8', '10', '12', 'B'),
                ('Which planet is known as the Red Planet?', 'Mars', 'Venus', 'Jupiter', 'Saturn', 'A'),
            ]
            for idx, (text, a, b, c, d, key) in enumerate(seed_questions):
                db.session.add(TriviaQuestion(
                    room=room,
                    order_index=idx,
                    question_text=text,
                    option_a=a,
                    option_b=b,
                    option_c=c,
                    option_d=d,
                    correct_option_key=key,
                    time_limit_seconds=20,
                ))

            db.session.commit()
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
