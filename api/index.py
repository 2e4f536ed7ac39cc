import os
import sys

# Add ROOT to sys.path (to find the 'growth_iq' package when not pip-installed)
root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if root_dir not in sys.path:
    sys.path.append(root_dir)

try:
    from growth_iq.app import create_app
    app = create_app()

except Exception as e:
    # Diagnostic Fail-Safe
    from flask import Flask, jsonify
    import traceback
    boot_error = str(e)
    boot_traceback = traceback.format_exc()
    app = Flask(__name__)

    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def catch_all(path):
        print(boot_traceback)
        return jsonify({'error': 'The application could not start', 'detail': boot_error}), 503
