"""
VidéoScramble — Flask Web Application
Upload a video, scramble or unscramble its rows with a key, download the result.
Run: python app.py
"""

import logging
import os
import sys
import uuid

from flask import Flask, request, jsonify, send_file
from werkzeug.utils import secure_filename

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from vidscramble import permutation, video_io
from vidscramble.errors import KeyParseError, ScrambleError
from vidscramble.frame_transform import Direction
from vidscramble.keys import parse_key, status_line
from vidscramble.pipeline import Pipeline

log = logging.getLogger("vidscramble.web")

# ── Config ────────────────────────────────────────────────────────────────────
UPLOAD_FOLDER = os.path.join(os.path.dirname(__file__), 'uploads')
OUTPUT_FOLDER = os.path.join(os.path.dirname(__file__), 'outputs')
os.makedirs(UPLOAD_FOLDER, exist_ok=True)
os.makedirs(OUTPUT_FOLDER, exist_ok=True)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 100 * 1024 * 1024  # 100 MB
app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['OUTPUT_FOLDER'] = OUTPUT_FOLDER

ALLOWED_VIDEO = {'mp4', 'avi', 'm4v', 'mov', 'mkv'}
MAX_PERMUTATION_ROWS = 8192
MODES = {'encrypt': Direction.FORWARD, 'decrypt': Direction.INVERSE}


def allowed(filename, exts):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in exts


def save_upload(file, allowed_exts):
    filename = secure_filename(file.filename or '')
    if not allowed(filename, allowed_exts):
        raise ValueError(f"Unsupported file type. Allowed: {sorted(allowed_exts)}")
    ext = filename.rsplit('.', 1)[1].lower()
    path = os.path.join(app.config['UPLOAD_FOLDER'], f"{uuid.uuid4().hex}.{ext}")
    file.save(path)
    return path


def out_path(ext):
    return os.path.join(app.config['OUTPUT_FOLDER'], f"{uuid.uuid4().hex}.{ext}")


# ── Routes ────────────────────────────────────────────────────────────────────

@app.route('/api/key/validate', methods=['POST'])
def key_validate():
    try:
        key = parse_key(request.form.get('key', ''))
    except KeyParseError as e:
        return jsonify(error=str(e)), 400
    return jsonify(success=True, key=key)


@app.route('/api/permutation')
def permutation_preview():
    try:
        key = parse_key(request.args.get('key', ''))
        rows = int(request.args.get('rows', ''))
    except ValueError as e:
        return jsonify(error=str(e)), 400
    if not 0 <= rows <= MAX_PERMUTATION_ROWS:
        return jsonify(error=f"rows must be between 0 and {MAX_PERMUTATION_ROWS}"), 400
    return jsonify(success=True, key=key, permutation=permutation.generate(key, rows))


@app.route('/api/video/scramble', methods=['POST'])
def video_scramble():
    file = request.files.get('video')
    if not file:
        return jsonify(error="No video uploaded"), 400
    mode = request.form.get('mode', 'encrypt').strip().lower()
    if mode not in MODES:
        return jsonify(error="Mode must be 'encrypt' or 'decrypt'"), 400
    try:
        key = parse_key(request.form.get('key', ''))
    except KeyParseError as e:
        return jsonify(error=str(e)), 400

    try:
        src = save_upload(file, ALLOWED_VIDEO)
    except ValueError as e:
        return jsonify(error=str(e)), 400

    dst = out_path('avi')
    direction = MODES[mode]
    errors = []
    pipeline = Pipeline(
        output_path=dst,
        key=key,
        direction=direction,
        capture_factory=video_io.open_capture,
        writer_factory=video_io.open_writer,
        interval=0,
        on_error=errors.append,
    )
    try:
        source = video_io.probe(src)
        frames = pipeline.run(src)
    except ScrambleError as e:
        return jsonify(error=str(e)), 400
    finally:
        os.remove(src)

    if errors or not os.path.exists(dst):
        message = str(errors[0]) if errors else "No frames could be read from the video"
        return jsonify(error=message), 400

    log.info("Scrambled upload -> %s (%d frames)", dst, frames)
    return jsonify(success=True, file_id=os.path.basename(dst),
                   filename=f"{mode}ed_video.avi", frames=frames, source=source,
                   status=status_line(key, direction, os.path.basename(dst)))


@app.route('/api/download/<path:file_id>')
def download(file_id):
    # Prevent path traversal
    root = os.path.normpath(app.config['OUTPUT_FOLDER'])
    safe = os.path.normpath(os.path.join(root, file_id))
    if not safe.startswith(root + os.sep):
        return jsonify(error="Invalid file id"), 400
    if not os.path.exists(safe):
        return jsonify(error="File not found"), 404
    return send_file(safe, as_attachment=True)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')
    print("\n🎬  VidéoScramble Web App")
    print("🌐  http://localhost:5000\n")
    app.run(host='0.0.0.0', port=5000, debug=False)
