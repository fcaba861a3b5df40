"""Page-side scripts for the selection overlay and the floating result panel.

The page only draws elements and forwards pointer/key events to Python through
the ``BINDING_NAME`` binding; all state lives on the Python side.
"""
from __future__ import annotations

BINDING_NAME = "__snaptextEvent"

OVERLAY_ID = "snaptext-overlay"
HINT_ID = "snaptext-initial-hint"
SELECTION_ID = "snaptext-selection"
PANEL_ID = "snaptext-result-panel"

# Left out of screenshots so the loading panel never lands in a crop.
CAPTURE_HIDDEN_SELECTORS = (f"#{OVERLAY_ID}", f"#{PANEL_ID}")

STYLE = """
#snaptext-overlay { position: fixed; inset: 0; z-index: 2147483646; cursor: crosshair;
  background: rgba(0, 0, 0, 0.25); }
#snaptext-initial-hint { position: fixed; top: 24px; left: 50%; transform: translateX(-50%);
  z-index: 2147483647; padding: 8px 16px; border-radius: 6px; background: rgba(0, 0, 0, 0.75);
  color: #fff; font: 13px sans-serif; pointer-events: none; }
#snaptext-selection { position: fixed; border: 2px solid #4f8cff; background: rgba(79, 140, 255, 0.12);
  box-sizing: border-box; }
#snaptext-selection-hint { position: absolute; right: 0; bottom: -22px; padding: 2px 6px;
  border-radius: 4px; background: #4f8cff; color: #fff; font: 11px sans-serif; }
#snaptext-result-panel { position: fixed; z-index: 2147483647; width: 420px; max-height: 500px;
  display: flex; flex-direction: column; background: #fff; color: #222; border-radius: 10px;
  box-shadow: 0 8px 32px rgba(0, 0, 0, 0.25); font: 14px/1.6 sans-serif; overflow: hidden; }
#snaptext-result-header { display: flex; align-items: center; justify-content: space-between;
  padding: 8px 12px; border-bottom: 1px solid #eee; cursor: move; user-select: none; }
#snaptext-result-body { padding: 12px; overflow: auto; }
#snaptext-result-body table { border-collapse: collapse; }
#snaptext-result-body th, #snaptext-result-body td { border: 1px solid #ddd; padding: 2px 8px; }
#snaptext-result-body pre { background: #f5f5f5; padding: 8px; overflow: auto; }
.snaptext-btn { display: flex; gap: 4px; align-items: center; border: none; background: none;
  cursor: pointer; font: 12px sans-serif; }
.snaptext-btn svg { width: 14px; height: 14px; }
.snaptext-btn.copied { color: #1a9f53; }
.snaptext-spinner { width: 16px; height: 16px; border: 2px solid #ddd; border-top-color: #4f8cff;
  border-radius: 50%; animation: snaptext-spin 0.8s linear infinite; }
@keyframes snaptext-spin { to { transform: rotate(360deg); } }
#snaptext-loading, #snaptext-error { display: flex; gap: 8px; align-items: center; }
#snaptext-error { color: #c0392b; }
#snaptext-error svg { width: 20px; height: 20px; flex: none; }
"""

COPY_ICON = (
    '<svg viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<rect x="9" y="9" width="13" height="13" rx="2" ry="2"/>'
    '<path d="M5 15H4a2 2 0 0 1-2-2V4a2 2 0 0 1 2-2h9a2 2 0 0 1 2 2v1"/></svg>'
)
CHECK_ICON = (
    '<svg viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<polyline points="20 6 9 17 4 12"/></svg>'
)
CLOSE_ICON = (
    '<svg viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<line x1="18" y1="6" x2="6" y2="18"/><line x1="6" y1="6" x2="18" y2="18"/></svg>'
)
ERROR_ICON = (
    '<svg viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<circle cx="12" cy="12" r="10"/><line x1="15" y1="9" x2="9" y2="15"/>'
    '<line x1="9" y1="9" x2="15" y2="15"/></svg>'
)

# Installs ``window.__snaptext``; evaluated with a config object, safe to run repeatedly.
BOOTSTRAP_SCRIPT = """
(config) => {
  if (window.__snaptext) return;
  const send = (event) => window[config.binding](event);
  const byId = (id) => document.getElementById(id);
  const listeners = [];
  const listen = (target, type, fn) => {
    target.addEventListener(type, fn, true);
    listeners.push([target, type, fn]);
  };
  let dragging = false;

  const style = document.createElement('style');
  style.id = 'snaptext-style';
  style.textContent = config.style;
  (document.head || document.documentElement).appendChild(style);

  const api = {
    viewport() {
      return { width: window.innerWidth, height: window.innerHeight };
    },
    mountOverlay(hintText) {
      const overlay = document.createElement('div');
      overlay.id = config.ids.overlay;
      const hint = document.createElement('div');
      hint.id = config.ids.hint;
      hint.textContent = hintText;
      document.body.appendChild(overlay);
      document.body.appendChild(hint);

      listen(overlay, 'mousedown', (e) => {
        if (e.button !== 0) return;
        e.preventDefault();
        dragging = true;
        const existingHint = byId(config.ids.hint);
        if (existingHint) existingHint.remove();
        send({ type: 'down', x: e.clientX, y: e.clientY, button: e.button });
      });
      listen(document, 'mousemove', (e) => {
        if (!dragging) return;
        e.preventDefault();
        send({ type: 'move', x: e.clientX, y: e.clientY });
      });
      listen(document, 'mouseup', (e) => {
        if (!dragging) return;
        dragging = false;
        send({ type: 'up', x: e.clientX, y: e.clientY });
      });
      listen(document, 'keydown', (e) => {
        if (e.key === 'Escape') send({ type: 'key', key: e.key });
      });
    },
    updateSelection(rect, label) {
      const overlay = byId(config.ids.overlay);
      if (!overlay) return;
      let selection = byId(config.ids.selection);
      if (!selection) {
        selection = document.createElement('div');
        selection.id = config.ids.selection;
        overlay.appendChild(selection);
      }
      selection.style.left = rect.x + 'px';
      selection.style.top = rect.y + 'px';
      selection.style.width = rect.width + 'px';
      selection.style.height = rect.height + 'px';
      let sizeHint = byId('snaptext-selection-hint');
      if (!sizeHint) {
        sizeHint = document.createElement('div');
        sizeHint.id = 'snaptext-selection-hint';
        selection.appendChild(sizeHint);
      }
      sizeHint.textContent = label;
    },
    hideOverlay() {
      const overlay = byId(config.ids.overlay);
      if (overlay) overlay.style.visibility = 'hidden';
    },
    removeOverlay() {
      dragging = false;
      while (listeners.length) {
        const [target, type, fn] = listeners.pop();
        target.removeEventListener(type, fn, true);
      }
      [config.ids.overlay, config.ids.hint].forEach((id) => {
        const el = byId(id);
        if (el) el.remove();
      });
    },
    removePanel() {
      const panel = byId(config.ids.panel);
      if (panel) panel.remove();
    },
    showPanel(view) {
      let panel = byId(config.ids.panel);
      if (!panel) {
        panel = createPanel(view.title);
        document.body.appendChild(panel);
      }
      panel.style.left = view.x + 'px';
      panel.style.top = view.y + 'px';
      panel.style.maxHeight = view.maxHeight + 'px';
      panel.querySelector('#snaptext-result-body').innerHTML = view.bodyHtml;
      const copyBtn = panel.querySelector('.snaptext-btn-copy');
      if (view.copyText === null || view.copyText === undefined) {
        copyBtn.style.display = 'none';
        delete copyBtn.dataset.text;
      } else {
        copyBtn.style.display = 'flex';
        copyBtn.dataset.text = view.copyText;
      }
    },
  };

  function createPanel(title) {
    const panel = document.createElement('div');
    panel.id = config.ids.panel;
    panel.innerHTML =
      '<div id="snaptext-result-header"><div id="snaptext-result-title"></div>' +
      '<div id="snaptext-result-actions">' +
      '<button class="snaptext-btn snaptext-btn-copy" title="Copy all text">' + config.icons.copy +
      '<span>' + config.labels.copy + '</span></button>' +
      '<button class="snaptext-btn snaptext-btn-close" title="Close">' + config.icons.close + '</button>' +
      '</div></div><div id="snaptext-result-body"></div>';
    panel.querySelector('#snaptext-result-title').textContent = title;
    panel.querySelector('.snaptext-btn-close').addEventListener('click', () => panel.remove());
    panel.querySelector('.snaptext-btn-copy').addEventListener('click', (e) => {
      const btn = e.currentTarget;
      copyToClipboard(btn.dataset.text || '', btn);
    });
    makeDraggable(panel);
    return panel;
  }

  function makeDraggable(panel) {
    const header = panel.querySelector('#snaptext-result-header');
    let active = false;
    let offsetX = 0;
    let offsetY = 0;
    header.addEventListener('mousedown', (e) => {
      if (e.target.closest('button')) return;
      active = true;
      const box = panel.getBoundingClientRect();
      offsetX = e.clientX - box.left;
      offsetY = e.clientY - box.top;
      e.preventDefault();
    });
    document.addEventListener('mousemove', (e) => {
      if (!active) return;
      const x = Math.max(0, Math.min(e.clientX - offsetX, window.innerWidth - panel.offsetWidth));
      const y = Math.max(0, Math.min(e.clientY - offsetY, window.innerHeight - panel.offsetHeight));
      panel.style.left = x + 'px';
      panel.style.top = y + 'px';
    });
    document.addEventListener('mouseup', () => {
      active = false;
    });
  }

  function confirmCopied(btn) {
    btn.classList.add('copied');
    btn.innerHTML = config.icons.check + '<span>' + config.labels.copied + '</span>';
    setTimeout(() => {
      btn.classList.remove('copied');
      btn.innerHTML = config.icons.copy + '<span>' + config.labels.copy + '</span>';
    }, config.copyConfirmMs);
  }

  async function copyToClipboard(text, btn) {
    try {
      await navigator.clipboard.writeText(text);
      confirmCopied(btn);
    } catch (err) {
      const input = document.createElement('textarea');
      input.value = text;
      input.style.position = 'fixed';
      input.style.opacity = '0';
      document.body.appendChild(input);
      input.select();
      const copied = document.execCommand('copy');
      input.remove();
      if (copied) confirmCopied(btn);
    }
  }

  window.__snaptext = api;
}
"""
