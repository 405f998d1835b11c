import uuid

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from config import Settings, get_settings
from encoder import validate_text, validate_video
from errors import InputRejected
from export import EXPORT_FILENAME, build_export_text
from logging_utils import configure_logging, get_logger
from models import InputMode, ModeRequest, ProcessingStatus, SelectedFile, StateView, TextRequest
from processor import process
from state import (
    Processor,
    SessionStore,
    can_submit,
    clear,
    select_file,
    select_mode,
    set_text,
    submit,
    to_view,
)

SESSION_COOKIE = "duoscribe_session"

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger("duoscribe")

app = FastAPI(title="DuoScribe")

# Konfigurasi CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.store = SessionStore(
    max_sessions=settings.max_sessions,
    ttl_seconds=settings.session_ttl_seconds,
)


@app.middleware("http")
async def ensure_session(request: Request, call_next):
    session_id = request.cookies.get(SESSION_COOKIE)
    is_new = not session_id
    if is_new:
        session_id = uuid.uuid4().hex
    request.state.session_id = session_id

    response = await call_next(request)
    if is_new:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


def get_store(request: Request) -> SessionStore:
    return request.app.state.store


def get_session_id(request: Request) -> str:
    return request.state.session_id


def get_processor() -> Processor:
    return process


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/state", response_model=StateView)
async def read_state(
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
):
    return to_view(store.get(session_id))


@app.post("/api/mode", response_model=StateView)
async def change_mode(
    body: ModeRequest,
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
):
    return to_view(store.update(session_id, select_mode, body.mode))


@app.post("/api/file", response_model=StateView)
async def upload_file(
    file: UploadFile = File(...),
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
    settings: Settings = Depends(get_settings),
):
    state = store.get(session_id)
    if state.mode != InputMode.VIDEO:
        raise HTTPException(status_code=409, detail="Switch to video mode to upload a file.")
    if state.status == ProcessingStatus.PROCESSING:
        raise HTTPException(status_code=409, detail="A submission is already in progress.")

    try:
        # Multipart parsing spools the body to a temp file, so the size is
        # known before anything is pulled into memory
        if file.size is not None:
            validate_video(file.size, file.content_type or "", settings.max_video_bytes)
        content = await file.read()
        validate_video(len(content), file.content_type or "", settings.max_video_bytes)
    except InputRejected as e:
        logger.info("Rejected upload %r: %s", file.filename, e.message)
        raise HTTPException(status_code=400, detail=e.message)

    selected = SelectedFile(
        name=file.filename or "video",
        size=len(content),
        mime_type=file.content_type or "",
        data=content,
    )
    logger.info("Selected %s (%.2f MB)", selected.name, selected.size_mb)
    return to_view(store.update(session_id, select_file, selected))


@app.post("/api/text", response_model=StateView)
async def update_text(
    body: TextRequest,
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
    settings: Settings = Depends(get_settings),
):
    try:
        validate_text(body.text, settings.max_text_chars)
    except InputRejected as e:
        raise HTTPException(status_code=400, detail=e.message)
    return to_view(store.update(session_id, set_text, body.text))


@app.post("/api/submit", response_model=StateView)
async def submit_content(
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
    processor: Processor = Depends(get_processor),
):
    if not can_submit(store.get(session_id)):
        raise HTTPException(status_code=409, detail="Nothing to submit.")
    return to_view(await submit(store, session_id, processor))


@app.post("/api/clear", response_model=StateView)
async def clear_form(
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
):
    return to_view(store.update(session_id, clear))


@app.get("/api/export")
async def export_result(
    store: SessionStore = Depends(get_store),
    session_id: str = Depends(get_session_id),
):
    result = store.get(session_id).result
    if result is None:
        raise HTTPException(status_code=404, detail="No result to export.")
    return PlainTextResponse(
        build_export_text(result),
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@app.get("/", response_class=HTMLResponse)
async def get_index(settings: Settings = Depends(get_settings)):
    return INDEX_HTML.replace("__MAX_VIDEO_MB__", str(settings.max_video_mb))


INDEX_HTML = """
<!DOCTYPE html>
<html lang="id">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>DuoScribe</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@300;400;600;700;800&family=Fira+Code:wght@400;500&display=swap" rel="stylesheet">
    <style>
        body { font-family: 'Inter', sans-serif; }
        .font-mono { font-family: 'Fira Code', monospace; }

        .custom-scrollbar::-webkit-scrollbar { width: 6px; }
        .custom-scrollbar::-webkit-scrollbar-track { background: transparent; }
        .custom-scrollbar::-webkit-scrollbar-thumb { background: #cbd5e1; border-radius: 10px; }

        .loader-spin {
            border: 4px solid #e0e7ff;
            border-top: 4px solid #4f46e5;
            border-radius: 50%;
            width: 96px;
            height: 96px;
            animation: spin 1s linear infinite;
        }
        @keyframes spin { 0% { transform: rotate(0deg); } 100% { transform: rotate(360deg); } }
    </style>
</head>
<body class="bg-slate-50 text-slate-900 min-h-screen">

    <nav class="sticky top-0 z-50 bg-white/80 backdrop-blur-md border-b border-slate-200">
        <div class="max-w-7xl mx-auto px-4 sm:px-6 lg:px-8 h-16 flex items-center justify-between">
            <div class="flex items-center gap-2">
                <div class="bg-indigo-600 p-2 rounded-lg text-white">
                    <svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2" stroke-linecap="round" stroke-linejoin="round"><path d="M12 8V4H8"/><rect width="16" height="12" x="4" y="8" rx="2"/><path d="M2 14h2"/><path d="M20 14h2"/><path d="M15 13v2"/><path d="M9 13v2"/></svg>
                </div>
                <span class="text-xl font-bold bg-clip-text text-transparent bg-gradient-to-r from-indigo-600 to-violet-600">DuoScribe</span>
            </div>
            <span class="hidden sm:inline-flex items-center gap-1.5 px-3 py-1 bg-slate-100 rounded-full text-sm text-slate-500">
                Powered by Gemini 2.5
            </span>
        </div>
    </nav>

    <main class="max-w-7xl mx-auto px-4 sm:px-6 lg:px-8 py-10">
        <div class="text-center max-w-2xl mx-auto mb-12">
            <h1 class="text-4xl font-bold text-slate-900 mb-4 tracking-tight">
                Transcribe &amp; Translate <br><span class="text-indigo-600">in One Click</span>
            </h1>
            <p class="text-lg text-slate-600">
                Convert your videos or YouTube scripts into structured documents containing both the original language and Indonesian translation instantly.
            </p>
        </div>

        <div class="grid lg:grid-cols-12 gap-8 items-start">
            <!-- Input column -->
            <div class="lg:col-span-5 space-y-6">
                <div class="bg-white rounded-2xl shadow-sm border border-slate-200 overflow-hidden">
                    <div class="flex border-b border-slate-200">
                        <button id="tab-video" data-mode="VIDEO" class="mode-tab flex-1 py-4 text-sm font-medium flex items-center justify-center gap-2">Video Upload</button>
                        <button id="tab-text" data-mode="TEXT" class="mode-tab flex-1 py-4 text-sm font-medium flex items-center justify-center gap-2">YouTube Text / Script</button>
                    </div>

                    <div class="p-6">
                        <!-- Video mode -->
                        <div id="video-panel">
                            <p class="text-sm text-slate-500 mb-4">Supported formats: MP4, MOV, WEBM (Max __MAX_VIDEO_MB__MB)</p>

                            <div id="drop-zone" class="border-2 border-dashed border-slate-300 bg-slate-50 rounded-xl p-8 flex flex-col items-center justify-center text-center min-h-[240px] transition-all hover:border-indigo-400 hover:bg-slate-100">
                                <input type="file" id="file-input" class="hidden" accept="video/*">
                                <div class="w-16 h-16 bg-indigo-50 rounded-full flex items-center justify-center mb-4 text-indigo-600">
                                    <svg xmlns="http://www.w3.org/2000/svg" width="32" height="32" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2" stroke-linecap="round" stroke-linejoin="round"><path d="M21 15v4a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2v-4"/><polyline points="17 8 12 3 7 8"/><line x1="12" y1="3" x2="12" y2="15"/></svg>
                                </div>
                                <p class="text-slate-700 font-medium mb-1">Drag and drop your video here</p>
                                <p class="text-slate-400 text-sm mb-4">or</p>
                                <button id="select-btn" class="px-4 py-2 rounded-lg bg-white border border-slate-300 text-slate-700 text-sm font-medium hover:bg-slate-50">Select File</button>
                            </div>

                            <div id="file-preview" class="hidden relative border border-indigo-100 bg-indigo-50/50 rounded-xl p-6 text-center">
                                <button id="remove-btn" class="absolute top-3 right-3 p-1 text-slate-400 hover:text-red-500" title="Remove">
                                    <svg xmlns="http://www.w3.org/2000/svg" width="20" height="20" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2" stroke-linecap="round" stroke-linejoin="round"><line x1="18" y1="6" x2="6" y2="18"/><line x1="6" y1="6" x2="18" y2="18"/></svg>
                                </button>
                                <h4 id="file-name" class="font-semibold text-slate-800 truncate">video.mp4</h4>
                                <p id="file-size" class="text-sm text-slate-500 mt-1">0.00 MB</p>
                                <p class="text-sm text-green-600 mt-3 font-medium">Ready to transcribe</p>
                            </div>
                        </div>

                        <!-- Text mode -->
                        <div id="text-panel" class="hidden">
                            <p class="text-sm text-slate-500 mb-4">Paste YouTube transcript, captions, or any text to translate.</p>
                            <textarea id="text-input" rows="12" placeholder="Paste your text here..." class="w-full p-4 border border-slate-200 rounded-xl text-sm focus:outline-none focus:ring-2 focus:ring-indigo-500 resize-none custom-scrollbar"></textarea>
                            <div class="flex justify-end mt-2">
                                <button id="clear-text-btn" class="text-xs text-slate-400 hover:text-red-500">Clear</button>
                            </div>
                        </div>
                    </div>
                </div>

                <div class="bg-indigo-900 rounded-2xl p-6 text-white shadow-lg">
                    <h3 class="font-semibold text-lg mb-2">Ready to process?</h3>
                    <p id="ready-text" class="text-indigo-200 text-sm mb-6">We will extract text from your video and generate a dual-language document.</p>

                    <div id="error-box" class="hidden mb-4 p-3 bg-red-500/20 border border-red-500/50 rounded-lg text-sm text-red-100">
                        <p id="error-message"></p>
                    </div>

                    <button id="submit-btn" disabled class="w-full py-3 px-4 rounded-xl font-semibold flex items-center justify-between bg-white text-indigo-900 disabled:opacity-50 disabled:cursor-not-allowed">
                        <span id="submit-text">Start Transcription</span>
                        <svg xmlns="http://www.w3.org/2000/svg" width="18" height="18" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2" stroke-linecap="round" stroke-linejoin="round"><line x1="5" y1="12" x2="19" y2="12"/><polyline points="12 5 19 12 12 19"/></svg>
                    </button>
                </div>
            </div>

            <!-- Output column -->
            <div class="lg:col-span-7 min-h-[600px]">
                <div id="output-placeholder" class="min-h-[600px] bg-slate-100 rounded-2xl border-2 border-dashed border-slate-300 flex flex-col items-center justify-center p-8 text-center">
                    <h3 class="text-lg font-medium text-slate-600">No content generated yet</h3>
                    <p class="text-slate-400 max-w-xs mt-2 text-sm">Upload a video or paste text on the left panel to see the transcription and translation results here.</p>
                </div>

                <div id="output-processing" class="hidden min-h-[600px] bg-white rounded-2xl shadow-sm border border-slate-200 flex flex-col items-center justify-center p-8 text-center">
                    <div class="loader-spin mb-6"></div>
                    <h3 class="text-xl font-semibold text-slate-800">Processing Content...</h3>
                    <p class="text-slate-500 mt-2 max-w-md">Gemini is analyzing the audio, transcribing the content, and translating it to Indonesian. This may take a moment.</p>
                </div>

                <div id="output-result" class="hidden bg-white rounded-2xl shadow-sm border border-slate-200 overflow-hidden">
                    <div class="p-4 border-b border-slate-200 flex flex-wrap items-center justify-between gap-3">
                        <div>
                            <h3 class="font-semibold text-slate-800">Transcription Result</h3>
                            <p id="result-language" class="text-xs text-slate-500"></p>
                        </div>
                        <div class="flex items-center gap-2">
                            <div class="flex bg-slate-100 rounded-lg p-1 text-xs font-medium">
                                <button data-view="side-by-side" class="view-tab px-3 py-1.5 rounded-md">Split View</button>
                                <button data-view="original" class="view-tab px-3 py-1.5 rounded-md">Original</button>
                                <button data-view="indonesian" class="view-tab px-3 py-1.5 rounded-md">Indonesian</button>
                            </div>
                            <button id="export-btn" class="px-3 py-1.5 rounded-lg bg-indigo-600 text-white text-xs font-semibold hover:bg-indigo-700">Export .txt</button>
                        </div>
                    </div>

                    <div id="result-summary" class="px-4 py-3 bg-indigo-50 text-sm text-indigo-900"></div>

                    <div id="result-columns" class="grid md:grid-cols-2 divide-y md:divide-y-0 md:divide-x divide-slate-200">
                        <div id="col-original" class="flex flex-col">
                            <div class="flex items-center justify-between px-4 py-2 bg-slate-50 border-b border-slate-200">
                                <span class="text-xs font-bold uppercase tracking-wider text-slate-500">Original</span>
                                <button data-copy="original" class="copy-btn text-xs text-slate-500 hover:text-indigo-600">Copy</button>
                            </div>
                            <div id="text-original" class="p-4 text-sm leading-relaxed whitespace-pre-wrap overflow-auto max-h-[520px] custom-scrollbar"></div>
                        </div>
                        <div id="col-indonesian" class="flex flex-col">
                            <div class="flex items-center justify-between px-4 py-2 bg-slate-50 border-b border-slate-200">
                                <span class="text-xs font-bold uppercase tracking-wider text-slate-500">Indonesian</span>
                                <button data-copy="indonesian" class="copy-btn text-xs text-slate-500 hover:text-indigo-600">Copy</button>
                            </div>
                            <div id="text-indonesian" class="p-4 text-sm leading-relaxed whitespace-pre-wrap overflow-auto max-h-[520px] custom-scrollbar"></div>
                        </div>
                    </div>

                    <details class="border-t border-slate-200">
                        <summary class="px-4 py-2 text-xs text-slate-400 cursor-pointer">Raw response</summary>
                        <pre id="raw-output" class="px-4 pb-4 text-xs font-mono text-slate-500 whitespace-pre-wrap overflow-auto max-h-64 custom-scrollbar"></pre>
                    </details>
                </div>
            </div>
        </div>
    </main>

    <script>
        const MAX_VIDEO_BYTES = __MAX_VIDEO_MB__ * 1024 * 1024;

        const modeTabs = document.querySelectorAll('.mode-tab');
        const videoPanel = document.getElementById('video-panel');
        const textPanel = document.getElementById('text-panel');
        const dropZone = document.getElementById('drop-zone');
        const fileInput = document.getElementById('file-input');
        const selectBtn = document.getElementById('select-btn');
        const filePreview = document.getElementById('file-preview');
        const fileNameLabel = document.getElementById('file-name');
        const fileSizeLabel = document.getElementById('file-size');
        const removeBtn = document.getElementById('remove-btn');
        const textInput = document.getElementById('text-input');
        const clearTextBtn = document.getElementById('clear-text-btn');
        const readyText = document.getElementById('ready-text');
        const errorBox = document.getElementById('error-box');
        const errorMessage = document.getElementById('error-message');
        const submitBtn = document.getElementById('submit-btn');
        const outputPlaceholder = document.getElementById('output-placeholder');
        const outputProcessing = document.getElementById('output-processing');
        const outputResult = document.getElementById('output-result');
        const viewTabs = document.querySelectorAll('.view-tab');
        const colOriginal = document.getElementById('col-original');
        const colIndonesian = document.getElementById('col-indonesian');
        const resultColumns = document.getElementById('result-columns');

        let current = null;
        let activeView = 'side-by-side';
        let textTimer = null;

        async function api(path, options = {}) {
            const response = await fetch(path, { credentials: 'same-origin', ...options });
            const data = await response.json().catch(() => ({}));
            if (!response.ok) {
                throw new Error(data.detail || 'Request failed.');
            }
            return data;
        }

        function postJson(path, body) {
            return api(path, {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify(body || {}),
            });
        }

        function render(state) {
            current = state;
            const isVideo = state.mode === 'VIDEO';

            modeTabs.forEach((tab) => {
                const active = tab.dataset.mode === state.mode;
                tab.classList.toggle('text-indigo-600', active);
                tab.classList.toggle('border-b-2', active);
                tab.classList.toggle('border-indigo-600', active);
                tab.classList.toggle('bg-indigo-50/50', active);
                tab.classList.toggle('text-slate-500', !active);
            });
            videoPanel.classList.toggle('hidden', !isVideo);
            textPanel.classList.toggle('hidden', isVideo);
            readyText.innerText = `We will extract text from your ${isVideo ? 'video' : 'input'} and generate a dual-language document.`;

            dropZone.classList.toggle('hidden', !!state.file);
            filePreview.classList.toggle('hidden', !state.file);
            if (state.file) {
                fileNameLabel.innerText = state.file.name;
                fileSizeLabel.innerText = `${(state.file.size / (1024 * 1024)).toFixed(2)} MB`;
            }
            if (document.activeElement !== textInput) {
                textInput.value = state.text;
            }

            const processing = state.status === 'processing';
            submitBtn.disabled = !state.can_submit;
            document.getElementById('submit-text').innerText = processing ? 'Processing...' : 'Start Transcription';
            textInput.disabled = processing;

            errorBox.classList.toggle('hidden', state.status !== 'error');
            errorMessage.innerText = state.message || '';

            outputPlaceholder.classList.toggle('hidden', processing || !!state.result);
            outputProcessing.classList.toggle('hidden', !processing);
            outputResult.classList.toggle('hidden', !state.result);
            if (state.result) {
                document.getElementById('result-language').innerText = state.result.original_language
                    ? `Detected language: ${state.result.original_language}` : '';
                document.getElementById('result-summary').innerText = state.result.summary;
                document.getElementById('text-original').innerText = state.result.original;
                document.getElementById('text-indonesian').innerText = state.result.indonesian;
                document.getElementById('raw-output').innerText = state.result.raw;
                renderView();
            }
        }

        function renderView() {
            viewTabs.forEach((tab) => {
                const active = tab.dataset.view === activeView;
                tab.classList.toggle('bg-white', active);
                tab.classList.toggle('shadow-sm', active);
                tab.classList.toggle('text-indigo-600', active);
            });
            colOriginal.classList.toggle('hidden', activeView === 'indonesian');
            colIndonesian.classList.toggle('hidden', activeView === 'original');
            resultColumns.classList.toggle('md:grid-cols-2', activeView === 'side-by-side');
        }

        function showError(msg) {
            errorBox.classList.remove('hidden');
            errorMessage.innerText = msg;
        }

        // Mode tabs
        modeTabs.forEach((tab) => {
            tab.onclick = async () => {
                if (current && current.mode === tab.dataset.mode) return;
                render(await postJson('/api/mode', { mode: tab.dataset.mode }));
            };
        });

        // File selection
        async function handleFile(file) {
            if (!file) return;
            if (file.size > MAX_VIDEO_BYTES) {
                alert(`File is too large. Please upload a video smaller than __MAX_VIDEO_MB__MB.`);
                return;
            }
            if (!file.type.startsWith('video/')) {
                alert('Please upload a valid video file.');
                return;
            }
            const formData = new FormData();
            formData.append('file', file);
            try {
                render(await api('/api/file', { method: 'POST', body: formData }));
            } catch (err) {
                alert(err.message);
            } finally {
                fileInput.value = '';
            }
        }

        selectBtn.onclick = () => fileInput.click();
        fileInput.onchange = (e) => handleFile(e.target.files[0]);

        ['dragenter', 'dragover'].forEach((name) => {
            dropZone.addEventListener(name, (e) => {
                e.preventDefault();
                e.stopPropagation();
                dropZone.classList.add('border-indigo-500', 'bg-indigo-50');
            });
        });
        ['dragleave', 'drop'].forEach((name) => {
            dropZone.addEventListener(name, (e) => {
                e.preventDefault();
                e.stopPropagation();
                dropZone.classList.remove('border-indigo-500', 'bg-indigo-50');
            });
        });
        dropZone.addEventListener('drop', (e) => {
            if (e.dataTransfer.files && e.dataTransfer.files[0]) {
                handleFile(e.dataTransfer.files[0]);
            }
        });

        // Text input
        async function pushText() {
            clearTimeout(textTimer);
            textTimer = null;
            try {
                render(await postJson('/api/text', { text: textInput.value }));
            } catch (err) {
                showError(err.message);
            }
        }

        textInput.addEventListener('input', () => {
            submitBtn.disabled = textInput.value.trim().length === 0;
            clearTimeout(textTimer);
            textTimer = setTimeout(pushText, 300);
        });

        async function clearForm() {
            render(await postJson('/api/clear'));
        }

        removeBtn.onclick = clearForm;
        clearTextBtn.onclick = async () => {
            textInput.value = '';
            await clearForm();
        };

        // Submit
        submitBtn.onclick = async () => {
            if (current && current.mode === 'TEXT') {
                await pushText();
            }
            if (!current || !current.can_submit) return;
            render({ ...current, status: 'processing', can_submit: false, result: null, message: null });
            try {
                render(await postJson('/api/submit'));
            } catch (err) {
                render(await api('/api/state'));
                showError(err.message);
            }
        };

        // Result view
        viewTabs.forEach((tab) => {
            tab.onclick = () => {
                activeView = tab.dataset.view;
                renderView();
            };
        });

        document.querySelectorAll('.copy-btn').forEach((btn) => {
            btn.onclick = async () => {
                if (!current || !current.result) return;
                await navigator.clipboard.writeText(current.result[btn.dataset.copy]);
                btn.innerText = 'Copied';
                setTimeout(() => btn.innerText = 'Copy', 2000);
            };
        });

        document.getElementById('export-btn').onclick = () => {
            window.location.href = '/api/export';
        };

        api('/api/state').then(render).catch((err) => showError(err.message));
    </script>
</body>
</html>
"""


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
