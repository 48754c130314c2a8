from flask import current_app, request, jsonify, Response
from werkzeug.utils import secure_filename
import cv2
import numpy as np
from edgefit.main import main_bp
from edgefit.main.edge_solver.errors import LinkConflictError, UnknownEdgeError
from edgefit.main.edge_solver.models import format_label, parse_label
from edgefit.main.edge_solver.review.preview import encode_png
from edgefit.main.edge_solver.review.session import Action

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg'}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def workspace():
    return current_app.extensions['edgefit']


@main_bp.route('/pieces/<int:piece_id>', methods=['POST'])
def upload_piece(piece_id):
    """Upload one piece photo, extract its four edges and register them."""
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not allowed_file(secure_filename(file.filename)):
        return jsonify({'error': 'Invalid file type. Please upload PNG, JPG, or JPEG'}), 400

    file_bytes = np.frombuffer(file.read(), np.uint8)
    image = cv2.imdecode(file_bytes, cv2.IMREAD_COLOR)
    if image is None:
        return jsonify({'error': 'Failed to decode image'}), 400
    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    try:
        extraction = workspace().extract(piece_id, image)
    except ValueError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify({
        'success': extraction.ok,
        'piece_id': piece_id,
        'edges': {
            side: {
                'label': format_label(edge.label),
                'points': len(edge),
                'angle': extraction.alignments[side].angle,
                'corner_delta': extraction.alignments[side].corner_delta,
            }
            for side, edge in sorted(extraction.piece.edges.items())
        },
        'failures': [
            {'side': f.side, 'reason': f.reason} for f in extraction.failures
        ],
    })


@main_bp.route('/pieces/<int:piece_id>/preview/<int:side>.png')
def piece_preview(piece_id, side):
    """Annotated preview of the aligned buffer for one side."""
    alignment = workspace().alignments.get(piece_id, {}).get(side)
    if alignment is None:
        return jsonify({'error': f'No alignment for piece {piece_id} side {side}'}), 404

    image = workspace().preview.render_buffer(alignment.buffer, alignment.corners, alignment.bounds)
    return Response(encode_png(image), mimetype='image/png')


@main_bp.route('/edges/<label>/best')
def best_candidates(label):
    """Best-diff list of one edge ('piece.side')."""
    ws = workspace()
    try:
        edge = parse_label(label)
        k = int(request.args.get('k', ws.matching_config.default_k))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        candidates = ws.matcher.compute_best_diff(edge, k)
    except UnknownEdgeError as e:
        return jsonify({'error': str(e)}), 404
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'edge': format_label(edge),
        'k': k,
        'solved': ws.table.is_solved(edge),
        'candidates': [
            {'label': format_label(c.label), 'score': c.score} for c in candidates
        ],
    })


@main_bp.route('/session')
def session_state():
    """Current proposal of the review session."""
    session = workspace().session
    session.proposal()
    return jsonify(session.status())


@main_bp.route('/session/preview.png')
def session_preview():
    """Overlay of every proposed link: edge in white, flipped partner in orange."""
    ws = workspace()
    proposal = ws.session.proposal()
    if proposal is None or proposal.all_degenerate:
        return jsonify({'error': 'No proposal to preview'}), 404

    pairs = [(ws.table.get(a), ws.table.get(b)) for a, b in proposal.links]
    return Response(encode_png(ws.preview.render_links(pairs)), mimetype='image/png')


@main_bp.route('/session/action', methods=['POST'])
def session_action():
    """Apply one review action: {"action": "confirm", "piece": 3}."""
    data = request.get_json(silent=True) or {}
    try:
        action = Action(str(data.get('action', '')).lower())
    except ValueError:
        return jsonify({'error': f"Unknown action: {data.get('action')!r}"}), 400

    session = workspace().session
    try:
        piece = data.get('piece')
        session.apply(action, piece=None if piece is None else int(piece))
    except LinkConflictError as e:
        return jsonify({'error': str(e)}), 409
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(session.status())


@main_bp.route('/session/idle', methods=['POST'])
def session_idle():
    """Run one opportunistic best-diff computation."""
    label = workspace().session.idle_step()
    return jsonify({'computed': None if label is None else format_label(label)})
