import logging
from functools import wraps
from zoneinfo import ZoneInfo

from flask import Flask, Response, g, jsonify, request, session
from flask_migrate import Migrate
from sqlalchemy import func

from config import get_config
from constants import (
    CHAT_MESSAGE_LIMIT,
    EDITABLE_USER_FIELDS,
    EVENT_ADMIN_USER_UPDATED,
    EVENT_CSV_EXPORTED,
    EVENT_MENU_ITEM_TOGGLED,
    MAX_LENGTHS,
    MESSAGE_MAX_LENGTH,
    RECENT_EVENTS_LIMIT,
    VALID_ROLES,
)
from models import db, MenuItem, Message, Order, User
from services import (
    OrderRejected,
    admin_create_order,
    admin_delete_order,
    admin_update_order,
    create_order,
    current_cycle_key,
    current_time,
    cycle_orders,
    dispatch_cycle_sms,
    export_filename,
    export_orders_csv,
    find_order,
    is_cycle_locked,
    is_window_open,
    load_ordering_window,
    missing_users,
    order_insights,
    order_summary,
    save_ordering_window,
    set_cycle_lock,
    sms_status,
    time_until_next_window,
    update_order,
)
from services.audit import recent_events, record_event
from services.gate import GateState
from utils.sanitizer import clean_text, sanitize_name, sanitize_phone

app = Flask(__name__)
app.config.from_object(get_config())

logging.basicConfig(
    level=app.config['LOG_LEVEL'],
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

db.init_app(app)
migrate = Migrate(app, db)

# One civil timezone for every cycle and window calculation
ORDERING_ZONE = ZoneInfo(app.config['ORDERING_TIMEZONE'])


# ============================================
# HELPERS
# ============================================

def request_data():
    """JSON body if present, otherwise form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def parse_bool(value, default=None):
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def error_response(code, message, status):
    return jsonify({'error': code, 'message': message}), status


def get_current_user():
    user_id = session.get('user_id')
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = get_current_user()
        if user is None:
            return error_response('unauthorized', 'Sign in required', 401)
        if not user.whitelisted:
            return error_response('not_whitelisted', 'Your account is not on the team whitelist', 403)
        g.user = user
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not g.user.is_admin:
            return error_response('forbidden', 'Admin access required', 403)
        return view(*args, **kwargs)
    return wrapped


def this_cycle():
    return current_cycle_key(current_time(ORDERING_ZONE), ORDERING_ZONE)


@app.errorhandler(OrderRejected)
def handle_order_rejected(e):
    db.session.rollback()
    return error_response(e.code, e.message, e.status_code)


# ============================================
# ROUTES - AUTH
# ============================================

@app.route('/auth/login', methods=['POST'])
def login():
    """
    Start a session for an email the identity provider has already verified.

    Only whitelisted users get in.
    """
    email = (request_data().get('email') or '').strip().lower()
    if not email:
        return error_response('email_required', 'Email is required', 400)

    user = User.query.filter(func.lower(User.email) == email).first()
    if user is None or not user.whitelisted:
        logger.info("Refused sign-in for non-whitelisted email %s", email)
        return error_response('not_whitelisted', 'Your account is not on the team whitelist', 403)

    session.clear()
    session['user_id'] = user.id
    return jsonify({'user': user.to_dict()})


@app.route('/auth/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True})


# ============================================
# ROUTES - ORDERING
# ============================================

@app.route('/')
@app.route('/status')
@login_required
def status():
    now = current_time(ORDERING_ZONE)
    cycle_key = current_cycle_key(now, ORDERING_ZONE)
    window = load_ordering_window()
    gate = GateState(is_window_open(now, window, ORDERING_ZONE), is_cycle_locked(cycle_key))
    countdown = time_until_next_window(now, window, ORDERING_ZONE)

    orders = cycle_orders(cycle_key)
    my_order = find_order(g.user.id, cycle_key)

    if gate.cycle_locked:
        label = 'Locked by Admin'
    elif gate.window_open:
        label = f'Open until {window.end}'
    else:
        label = f'Next: {countdown.label()}'

    return jsonify({
        'friday_date': cycle_key.isoformat(),
        'window': {'start': window.start, 'end': window.end, 'timezone': app.config['ORDERING_TIMEZONE']},
        'window_open': gate.window_open,
        'locked': gate.cycle_locked,
        'can_order': gate.can_mutate,
        'status_label': label,
        'next_window': {**countdown.to_dict(), 'label': countdown.label()},
        'my_order': my_order.to_dict() if my_order else None,
        'summary': order_summary(orders),
        'order_count': len(orders),
    })


@app.route('/orders')
@login_required
def orders_list():
    orders = cycle_orders(this_cycle())
    return jsonify({'orders': [order.to_dict() for order in orders]})


@app.route('/orders', methods=['POST'])
@login_required
def order_create():
    data = request_data()
    order = create_order(
        g.user, data.get('item'), data.get('variant'), data.get('notes'),
        current_time(ORDERING_ZONE), ORDERING_ZONE, phone=data.get('phone'),
    )
    return jsonify({'order': order.to_dict()}), 201


@app.route('/orders/current', methods=['PUT', 'POST'])
@login_required
def order_update():
    data = request_data()
    order = update_order(
        g.user, data.get('item'), data.get('variant'), data.get('notes'),
        current_time(ORDERING_ZONE), ORDERING_ZONE, phone=data.get('phone'),
    )
    return jsonify({'order': order.to_dict()})


@app.route('/menu')
@login_required
def menu_list():
    items = MenuItem.query.filter_by(active=True).order_by(MenuItem.item, MenuItem.variant).all()
    return jsonify({'menu': [item.to_dict() for item in items]})


# ============================================
# ROUTES - CHAT
# ============================================

@app.route('/messages')
@login_required
def messages_list():
    latest = Message.query.order_by(Message.created_at.desc(), Message.id.desc()).limit(CHAT_MESSAGE_LIMIT).all()
    return jsonify({'messages': [message.to_dict() for message in reversed(latest)]})


@app.route('/messages', methods=['POST'])
@login_required
def messages_post():
    content = clean_text(request_data().get('content'))
    if not content:
        return error_response('message_empty', 'Message cannot be empty', 400)
    if len(content) > MESSAGE_MAX_LENGTH:
        return error_response('message_too_long', f'Messages must be {MESSAGE_MAX_LENGTH} characters or less', 400)

    message = Message(user_id=g.user.id, content=content)
    db.session.add(message)
    db.session.commit()
    return jsonify({'message': message.to_dict()}), 201


# ============================================
# ROUTES - ADMIN ORDERS
# ============================================

@app.route('/admin/timeframe')
@admin_required
def admin_timeframe():
    window = load_ordering_window()
    return jsonify({'start_time': window.start, 'end_time': window.end,
                    'timezone': app.config['ORDERING_TIMEZONE']})


@app.route('/admin/timeframe', methods=['PUT', 'POST'])
@admin_required
def admin_timeframe_update():
    data = request_data()
    window = save_ordering_window(data.get('start_time'), data.get('end_time'), g.user)
    return jsonify({'start_time': window.start, 'end_time': window.end})


@app.route('/admin/lock', methods=['POST'])
@admin_required
def admin_lock():
    """Set the cycle lock explicitly, or toggle it when no value is given."""
    cycle_key = this_cycle()
    locked = parse_bool(request_data().get('locked'))
    if locked is None:
        locked = not is_cycle_locked(cycle_key)
    count = set_cycle_lock(cycle_key, locked, g.user)
    return jsonify({
        'friday_date': cycle_key.isoformat(),
        'locked': is_cycle_locked(cycle_key),
        'order_count': count,
    })


@app.route('/admin/orders', methods=['POST'])
@admin_required
def admin_order_create():
    data = request_data()
    order = admin_create_order(
        g.user, data.get('user_id'), data.get('item'), data.get('variant'), data.get('notes'),
        current_time(ORDERING_ZONE), ORDERING_ZONE,
    )
    return jsonify({'order': order.to_dict()}), 201


@app.route('/admin/orders/<int:id>', methods=['PUT'])
@admin_required
def admin_order_update(id):
    data = request_data()
    order = admin_update_order(g.user, id, data.get('item'), data.get('variant'), data.get('notes'))
    return jsonify({'order': order.to_dict()})


@app.route('/admin/orders/<int:id>', methods=['DELETE'])
@admin_required
def admin_order_delete(id):
    admin_delete_order(g.user, id)
    return jsonify({'success': True})


@app.route('/admin/export.csv')
@admin_required
def admin_export_csv():
    cycle_key = this_cycle()
    orders = cycle_orders(cycle_key)
    record_event(EVENT_CSV_EXPORTED, g.user.id, {'friday_date': cycle_key.isoformat(), 'order_count': len(orders)})
    db.session.commit()

    return Response(
        export_orders_csv(orders, ORDERING_ZONE),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={export_filename(cycle_key)}'},
    )


@app.route('/admin/sms', methods=['POST'])
@admin_required
def admin_send_sms():
    result = dispatch_cycle_sms(this_cycle(), g.user, app.config)
    return jsonify({'success': True, 'orderCount': result['order_count'], 'twilioSid': result['sid']})


@app.route('/admin/sms/resend', methods=['POST'])
@admin_required
def admin_resend_sms():
    if not parse_bool(request_data().get('confirmed'), default=False):
        return error_response('confirmation_required', 'Resending needs confirmed=true', 400)
    result = dispatch_cycle_sms(this_cycle(), g.user, app.config, resend=True)
    return jsonify({'success': True, 'orderCount': result['order_count'], 'twilioSid': result['sid']})


@app.route('/admin/insights')
@admin_required
def admin_insights():
    cycle_key = this_cycle()
    orders = cycle_orders(cycle_key)
    users = User.query.order_by(User.name).all()
    return jsonify({
        'friday_date': cycle_key.isoformat(),
        'locked': is_cycle_locked(cycle_key),
        'sms': sms_status(cycle_key),
        'summary': order_summary(orders),
        'insights': order_insights(orders),
        'missing_users': [user.to_dict() for user in missing_users(users, orders)],
    })


@app.route('/admin/events')
@admin_required
def admin_events():
    return jsonify({'events': [event.to_dict() for event in recent_events(RECENT_EVENTS_LIMIT)]})


# ============================================
# ROUTES - ADMIN USERS & MENU
# ============================================

@app.route('/admin/users')
@admin_required
def admin_users():
    counts = dict(db.session.query(Order.user_id, func.count(Order.id)).group_by(Order.user_id).all())
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify({'users': [{**user.to_dict(), 'order_count': counts.get(user.id, 0)} for user in users]})


@app.route('/admin/users/<int:id>', methods=['PATCH'])
@admin_required
def admin_user_update(id):
    target = db.session.get(User, id)
    if target is None:
        return error_response('user_not_found', 'User not found', 404)

    updates = {key: value for key, value in request_data().items() if key in EDITABLE_USER_FIELDS}
    if not updates:
        return error_response('updates_required', 'No editable fields given', 400)

    if 'role' in updates:
        if not isinstance(updates['role'], str) or updates['role'] not in VALID_ROLES:
            return error_response('invalid_role', 'Role must be admin or member', 400)
        if target.id == g.user.id and updates['role'] != g.user.role:
            return error_response('own_role', 'Cannot change your own role', 400)
    if not isinstance(updates.get('name', ''), str):
        return error_response('invalid_name', 'Name must be text', 400)
    if not isinstance(updates.get('phone', ''), (str, type(None))):
        return error_response('invalid_phone', 'Phone must be text', 400)
    if not isinstance(updates.get('whitelisted', False), (bool, str)):
        return error_response('invalid_whitelisted', 'Whitelisted must be true or false', 400)

    if 'role' in updates:
        target.role = updates['role']
    if 'name' in updates:
        target.name = sanitize_name(updates['name'], MAX_LENGTHS['name'])
    if 'phone' in updates:
        target.phone = sanitize_phone(updates['phone'], MAX_LENGTHS['phone']) or None
    if 'whitelisted' in updates:
        target.whitelisted = parse_bool(updates['whitelisted'], default=False)

    record_event(EVENT_ADMIN_USER_UPDATED, g.user.id, {'target_user_id': target.id, 'updates': updates})
    db.session.commit()
    return jsonify({'user': target.to_dict()})


@app.route('/admin/menu/<int:id>/toggle', methods=['POST'])
@admin_required
def admin_menu_toggle(id):
    item = db.session.get(MenuItem, id)
    if item is None:
        return error_response('menu_item_not_found', 'Menu item not found', 404)

    item.active = not item.active
    record_event(EVENT_MENU_ITEM_TOGGLED, g.user.id, {'item_id': item.id, 'active': item.active})
    db.session.commit()
    return jsonify({'item': item.to_dict()})


# ============================================
# INITIALIZE DATABASE
# ============================================

def init_db():
    with app.app_context():
        # Enable SQLite foreign key enforcement
        from sqlalchemy import event
        from sqlalchemy.engine import Engine
        import sqlite3

        @event.listens_for(Engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if isinstance(dbapi_connection, sqlite3.Connection):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        db.create_all()


if __name__ == '__main__':
    init_db()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000, use_reloader=False)
